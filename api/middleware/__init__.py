from .context import PlatformContextMiddleware, get_platform_context

__all__ = [
    "PlatformContextMiddleware",
    "get_platform_context",
]
