"""
Error codes reported by the platform's RPC layer and its services.

This package exposes RpcErrorCode at `shared.codes`, keeps per-service
tables under `shared.codes.app_identity_codes` / `shared.codes.modules_codes`
and the display-name registry under `shared.codes.registry`.
"""
from enum import IntEnum

from .registry import error_code_name, register_error_code_map, registered_services


class RpcErrorCode(IntEnum):
    """RPC-layer failure codes (single source of truth)."""

    OK = 0
    CALL_NOT_FOUND = 1
    PARSE_ERROR = 2
    SECURITY_VIOLATION = 3
    OVER_QUOTA = 4
    REQUEST_TOO_LARGE = 5
    CAPABILITY_DISABLED = 6
    FEATURE_DISABLED = 7
    BAD_REQUEST = 8
    RESPONSE_TOO_LARGE = 9
    CANCELLED = 10
    REPLAY_ERROR = 11
    DEADLINE_EXCEEDED = 12

    # Transport failures with no matching platform code
    UNKNOWN = 99


__all__ = [
    "RpcErrorCode",
    "error_code_name",
    "register_error_code_map",
    "registered_services",
]
