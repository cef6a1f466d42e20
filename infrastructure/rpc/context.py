"""
Request-bound platform context.

One ``RequestContext`` per inbound request: it carries the request headers
(API ticket, request log id, ...) and forwards calls to a shared dispatcher.
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from typing import Mapping, Optional, Type, TypeVar

from application.dtos.base import Message
from domain.common.exceptions import ContextUnavailableError
from infrastructure.rpc.base import BaseDispatcher
from infrastructure.runtime import environment as runtime_env

R = TypeVar("R", bound=Message)

# 当前请求绑定的上下文，由中间件设置
current_context_var: ContextVar[Optional["RequestContext"]] = ContextVar("platform_context", default=None)


class RequestContext:
    def __init__(
        self,
        dispatcher: BaseDispatcher,
        headers: Optional[Mapping[str, str]] = None,
        environment: Optional[Mapping[str, str]] = None,
        deadline: Optional[float] = None,
    ) -> None:
        self.dispatcher = dispatcher
        # Header names are case-insensitive
        self._headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.environment: Mapping[str, str] = dict(os.environ if environment is None else environment)
        self.deadline = deadline

    @property
    def api_ticket(self) -> Optional[str]:
        return self.header(runtime_env.API_TICKET_HEADER)

    def header(self, name: str) -> Optional[str]:
        return self._headers.get(name.lower())

    def fully_qualified_app_id(self) -> str:
        return runtime_env.env_value(runtime_env.APPLICATION_ID_ENV, self.environment)

    async def call(self, service: str, method: str, request: Message, response_type: Type[R]) -> R:
        return await self.dispatcher.call(
            service,
            method,
            request,
            response_type,
            deadline=self.deadline,
            ticket=self.api_ticket,
        )


def new_context(
    headers: Optional[Mapping[str, str]] = None,
    dispatcher: Optional[BaseDispatcher] = None,
    *,
    environment: Optional[Mapping[str, str]] = None,
    deadline: Optional[float] = None,
) -> RequestContext:
    """Build a context for one request, using the configured dispatcher by default."""
    if dispatcher is None:
        from infrastructure.rpc import get_dispatcher

        dispatcher = get_dispatcher()
    return RequestContext(dispatcher, headers=headers, environment=environment, deadline=deadline)


def get_current_context() -> RequestContext:
    ctx = current_context_var.get()
    if ctx is None:
        raise ContextUnavailableError()
    return ctx
