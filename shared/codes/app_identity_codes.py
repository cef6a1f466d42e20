"""
App identity service error codes.
"""
from __future__ import annotations

from enum import IntEnum


APP_IDENTITY_SERVICE = "app_identity_service"


class AppIdentityErrorCode(IntEnum):
    SUCCESS = 0
    UNKNOWN_SCOPE = 9
    BLOB_TOO_LARGE = 1000
    DEADLINE_EXCEEDED = 1001
    NOT_A_VALID_APP = 1002
    UNKNOWN_ERROR = 1003
    NOT_ALLOWED = 1005
    NOT_IMPLEMENTED = 1006
