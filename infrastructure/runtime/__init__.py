"""Runtime environment helpers (instance metadata from env and request headers)."""
from .environment import (
    DEFAULT_MODULE,
    backend_instance_index,
    display_app_id,
    env_value,
    parse_full_app_id,
    strip_module_prefix,
)

__all__ = [
    "DEFAULT_MODULE",
    "backend_instance_index",
    "display_app_id",
    "env_value",
    "parse_full_app_id",
    "strip_module_prefix",
]
