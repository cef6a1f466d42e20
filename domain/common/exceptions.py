"""平台调用异常定义，供访问层与调度器（dispatcher）使用。

Accessors never raise or catch these themselves: dispatchers raise them and
they reach the caller unchanged.
"""
from __future__ import annotations

from typing import Optional

from shared.codes import RpcErrorCode, error_code_name


class PlatformException(Exception):
    """平台异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "PlatformError",
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        super().__init__(self.message)


class APIError(PlatformException):
    """Application-level error reported by a service.

    The code belongs to the service's own table (see ``shared.codes``);
    ``name`` is resolved from the registered table at render time.
    """

    def __init__(self, service: str, code: int, detail: str = ""):
        self.service = service
        self.detail = detail
        super().__init__(
            code=int(code),
            message=detail,
            error_type="APIError",
            details={"service": service},
        )

    @property
    def name(self) -> Optional[str]:
        return error_code_name(self.service, self.code)

    def __str__(self) -> str:
        label = self.service
        if self.name:
            label = f"{self.service}: {self.name}"
        return f"API error {self.code} ({label}): {self.detail}"


class CallError(PlatformException):
    """RPC-layer failure: the call did not produce a service response."""

    def __init__(self, detail: str, code: int = RpcErrorCode.UNKNOWN, timeout: bool = False):
        self.detail = detail
        self.timeout = timeout
        super().__init__(
            code=int(code),
            message=detail,
            error_type="CallError",
            details={"timeout": timeout} if timeout else None,
        )

    def __str__(self) -> str:
        return f"Call error {self.code}: {self.detail}"


class ContextUnavailableError(PlatformException):
    """Raised when no request context is bound to the current task."""

    def __init__(self, message: str = "No platform context bound to the current request"):
        super().__init__(
            code=RpcErrorCode.UNKNOWN,
            message=message,
            error_type="ContextUnavailable",
        )
