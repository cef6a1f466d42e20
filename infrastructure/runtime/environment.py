"""
Instance metadata published by the platform through environment variables.

The sandbox sets these once per instance; request-scoped values arrive as
headers on the inbound request and are read through the context instead.
"""
from __future__ import annotations

import os
from typing import Mapping, Optional

# Environment keys set by the runtime
APPLICATION_ID_ENV = "APPLICATION_ID"
CURRENT_VERSION_ID_ENV = "CURRENT_VERSION_ID"
CURRENT_MODULE_ID_ENV = "CURRENT_MODULE_ID"
DEFAULT_VERSION_HOSTNAME_ENV = "DEFAULT_VERSION_HOSTNAME"
REQUEST_LOG_ID_ENV = "REQUEST_LOG_ID"
INSTANCE_ID_ENV = "INSTANCE_ID"
DATACENTER_ENV = "DATACENTER"
SERVER_SOFTWARE_ENV = "SERVER_SOFTWARE"
BACKEND_ID_ENV = "BACKEND_ID"

# Request headers
DEFAULT_VERSION_HOSTNAME_HEADER = "X-AppEngine-Default-Version-Hostname"
REQUEST_LOG_ID_HEADER = "X-AppEngine-Request-Log-Id"
API_TICKET_HEADER = "X-AppEngine-Api-Ticket"

DEFAULT_MODULE = "default"


def env_value(key: str, environ: Optional[Mapping[str, str]] = None, default: str = "") -> str:
    env = os.environ if environ is None else environ
    return env.get(key, default) or default


def parse_full_app_id(full_app_id: str) -> tuple[str, str, str]:
    """Split ``partition~domain:display`` into its three parts.

    Missing parts come back as empty strings, e.g.
    ``"s~example.com:appid"`` -> ``("s", "example.com", "appid")``.
    """
    partition = domain = ""
    rest = full_app_id
    if "~" in rest:
        partition, rest = rest.split("~", 1)
    if ":" in rest:
        domain, rest = rest.split(":", 1)
    return partition, domain, rest


def display_app_id(full_app_id: str) -> str:
    """Drop the partition, keep the custom-domain prefix."""
    _, domain, display = parse_full_app_id(full_app_id)
    if domain:
        return f"{domain}:{display}"
    return display


def strip_module_prefix(version_id: str) -> str:
    # CURRENT_VERSION_ID is "module:X.Y" for non-default modules
    if ":" in version_id:
        return version_id.split(":", 1)[1]
    return version_id


def backend_instance_index(environ: Optional[Mapping[str, str]] = None) -> int:
    """Index of this backend instance, or -1 when not running as a backend."""
    if not env_value(BACKEND_ID_ENV, environ):
        return -1
    instance = env_value(INSTANCE_ID_ENV, environ)
    if not instance.isdigit():
        return -1
    return int(instance)
