"""
Modules service error codes.
"""
from __future__ import annotations

from enum import IntEnum


MODULES_SERVICE = "modules"


class ModulesErrorCode(IntEnum):
    OK = 0
    INVALID_MODULE = 1
    INVALID_VERSION = 2
    INVALID_INSTANCES = 3
    TRANSIENT_ERROR = 4
    UNEXPECTED_STATE = 5
