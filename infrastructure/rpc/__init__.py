"""
RPC dispatchers and the request-bound context.

``get_dispatcher`` returns a process-wide dispatcher built from settings;
``shutdown_dispatcher`` closes it.
"""
from __future__ import annotations

from typing import Optional

from core.config import settings
from core.logging_config import get_logger
from .base import BaseDispatcher
from .context import RequestContext, get_current_context, new_context
from .grpc_dispatcher import GrpcDispatcher
from .http_dispatcher import HttpDispatcher

logger = get_logger(__name__)

_dispatcher: Optional[BaseDispatcher] = None


def create_dispatcher(transport: Optional[str] = None) -> BaseDispatcher:
    cfg = settings.rpc
    name = (transport or cfg.transport).lower()
    if name == "http":
        return HttpDispatcher(
            cfg.base_url,
            connect_timeout=cfg.connect_timeout,
            default_deadline=cfg.default_deadline,
            max_connect_retries=cfg.max_connect_retries,
            retry_delay=cfg.retry_delay,
        )
    if name == "grpc":
        root_certificates = None
        if cfg.tls.enabled and cfg.tls.ca:
            with open(cfg.tls.ca, "rb") as f:
                root_certificates = f.read()
        return GrpcDispatcher(
            cfg.grpc_target,
            default_deadline=cfg.default_deadline,
            root_certificates=root_certificates,
            secure=cfg.tls.enabled,
        )
    raise ValueError(f"Unsupported rpc transport: {name}")


def get_dispatcher() -> BaseDispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = create_dispatcher()
        logger.info("rpc_dispatcher_initialized", transport=_dispatcher.transport)
    return _dispatcher


async def shutdown_dispatcher() -> None:
    global _dispatcher
    if _dispatcher is not None:
        await _dispatcher.aclose()
        _dispatcher = None
        logger.info("rpc_dispatcher_closed")


__all__ = [
    "BaseDispatcher",
    "HttpDispatcher",
    "GrpcDispatcher",
    "RequestContext",
    "create_dispatcher",
    "get_dispatcher",
    "shutdown_dispatcher",
    "get_current_context",
    "new_context",
]
