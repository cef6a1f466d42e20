"""
Platform context port (application/ports) exposing a replaceable protocol.

The accessor layer depends on this Protocol; infrastructure provides the
request-bound implementation and the transports behind it.
"""
from __future__ import annotations

from typing import Mapping, Optional, Protocol, Type, TypeVar, runtime_checkable

from application.dtos.base import Message

R = TypeVar("R", bound=Message)


@runtime_checkable
class Context(Protocol):
    """Per-request handle onto the platform.

    ``call`` performs one RPC and either returns an instance of
    ``response_type`` or raises ``APIError`` / ``CallError``.
    """

    environment: Mapping[str, str]

    async def call(
        self,
        service: str,
        method: str,
        request: Message,
        response_type: Type[R],
    ) -> R: ...

    def fully_qualified_app_id(self) -> str: ...

    def header(self, name: str) -> Optional[str]: ...
