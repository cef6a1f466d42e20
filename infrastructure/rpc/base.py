"""
Base dispatcher implementing shared concerns: timing, logging, error logging.

Concrete transports subclass and implement ``_send``.
"""
from __future__ import annotations

import time
from typing import Optional, Type, TypeVar

from application.dtos.base import Message
from core.logging_config import get_logger
from domain.common.exceptions import APIError, CallError
from infrastructure.rpc.serializers import JsonMessageSerializer


logger = get_logger(__name__)

R = TypeVar("R", bound=Message)


class BaseDispatcher:
    transport: str = "base"

    def __init__(
        self,
        *,
        default_deadline: Optional[float] = None,
        serializer: Optional[JsonMessageSerializer] = None,
    ) -> None:
        self.default_deadline = default_deadline
        self.serializer = serializer or JsonMessageSerializer()

    async def call(
        self,
        service: str,
        method: str,
        request: Message,
        response_type: Type[R],
        *,
        deadline: Optional[float] = None,
        ticket: Optional[str] = None,
    ) -> R:
        """Perform one RPC.

        Raises:
            APIError: the service reported an application error
            CallError: the call failed below the service
        """
        if deadline is None:
            deadline = self.default_deadline
        start = time.perf_counter()
        self._log("rpc_call", service=service, method=method, deadline=deadline)
        try:
            return await self._send(service, method, request, response_type, deadline=deadline, ticket=ticket)
        except APIError as exc:
            logger.warning(
                "rpc_call_failed",
                transport=self.transport,
                service=service,
                method=method,
                error_type=exc.error_type,
                code=exc.code,
                name=exc.name,
            )
            raise
        except CallError as exc:
            logger.warning(
                "rpc_call_failed",
                transport=self.transport,
                service=service,
                method=method,
                error_type=exc.error_type,
                code=exc.code,
                timeout=exc.timeout,
                message=exc.detail,
            )
            raise
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self._log("rpc_call_done", service=service, method=method, elapsed_ms=round(elapsed_ms, 2))

    async def _send(
        self,
        service: str,
        method: str,
        request: Message,
        response_type: Type[R],
        *,
        deadline: Optional[float],
        ticket: Optional[str],
    ) -> R:
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release transport resources; default is a no-op."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    def _log(self, event: str, **kwargs) -> None:
        logger.debug(
            event,
            transport=self.transport,
            **kwargs,
        )
