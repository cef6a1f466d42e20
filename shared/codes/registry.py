"""
服务错误码名称表注册

Each RPC service reports application errors as bare integers. Services
register a code -> name table once at import time so errors can be rendered
with a readable name.
"""
from __future__ import annotations

from enum import IntEnum
from typing import Mapping, Optional, Type, Union

_error_code_maps: dict[str, dict[int, str]] = {}


def register_error_code_map(service: str, names: Union[Mapping[int, str], Type[IntEnum]]) -> None:
    """注册服务的错误码名称表（重复注册会覆盖）。"""
    if isinstance(names, type) and issubclass(names, IntEnum):
        table = {int(member.value): member.name for member in names}
    else:
        table = {int(code): str(name) for code, name in names.items()}
    _error_code_maps[service] = table


def error_code_name(service: str, code: int) -> Optional[str]:
    """Look up the registered name for a service error code, None if unknown."""
    table = _error_code_maps.get(service)
    if table is None:
        return None
    return table.get(int(code))


def registered_services() -> list[str]:
    return sorted(_error_code_maps)
