"""
平台上下文中间件
为每个请求构建 RequestContext，并通过 contextvars 传递给访问层
"""
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

import structlog

from infrastructure.rpc.base import BaseDispatcher
from infrastructure.rpc.context import RequestContext, current_context_var, new_context
from infrastructure.runtime.environment import REQUEST_LOG_ID_HEADER


class PlatformContextMiddleware(BaseHTTPMiddleware):
    """
    平台上下文中间件

    功能：
    1. 用请求头构建 RequestContext（API ticket、request log id 等）
    2. 存入 request.state 与 contextvars
    3. 将 request log id 绑定到 structlog 上下文
    """

    def __init__(self, app: ASGIApp, dispatcher: Optional[BaseDispatcher] = None, deadline: Optional[float] = None):
        super().__init__(app)
        self.dispatcher = dispatcher
        self.deadline = deadline

    async def dispatch(self, request: Request, call_next):
        ctx = new_context(dict(request.headers), self.dispatcher, deadline=self.deadline)
        request.state.platform_context = ctx

        request_log_id = ctx.header(REQUEST_LOG_ID_HEADER)
        if request_log_id:
            structlog.contextvars.bind_contextvars(request_log_id=request_log_id)

        token = current_context_var.set(ctx)
        try:
            return await call_next(request)
        finally:
            current_context_var.reset(token)
            if request_log_id:
                structlog.contextvars.unbind_contextvars("request_log_id")


async def get_platform_context(request: Request) -> RequestContext:
    """
    FastAPI 依赖：获取当前请求的平台上下文

    Returns:
        中间件构建的 RequestContext；未安装中间件时按当前请求头临时构建，
        并绑定到当前请求的 contextvars
    """
    ctx = getattr(request.state, "platform_context", None)
    if ctx is None:
        ctx = new_context(dict(request.headers))
        request.state.platform_context = ctx
        # Runs in the request task, so the endpoint sees the binding
        current_context_var.set(ctx)
    return ctx
