"""
HTTP 调度器

Sends each RPC as ``POST {base_url}/rpc/{service}/{method}``:
- 服务/方法/截止时间通过请求头传递
- 仅对连接失败（请求未送达）自动重试
- 应用错误与 RPC 错误映射为 APIError / CallError
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from application.dtos.base import Message
from domain.common.exceptions import APIError, CallError
from infrastructure.rpc.base import BaseDispatcher
from infrastructure.rpc.serializers import JsonMessageSerializer
from shared.codes import RpcErrorCode

_std_logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Message)

SERVICE_HEADER = "X-Google-RPC-Service-Endpoint"
METHOD_HEADER = "X-Google-RPC-Service-Method"
DEADLINE_HEADER = "X-Google-RPC-Service-Deadline"
TICKET_HEADER = "X-AppEngine-API-Ticket"

# HTTP status -> RPC code when the body carries no error of its own
HTTP_STATUS_TO_RPC_CODE = {
    400: RpcErrorCode.BAD_REQUEST,
    401: RpcErrorCode.SECURITY_VIOLATION,
    403: RpcErrorCode.SECURITY_VIOLATION,
    404: RpcErrorCode.CALL_NOT_FOUND,
    413: RpcErrorCode.REQUEST_TOO_LARGE,
    429: RpcErrorCode.OVER_QUOTA,
    504: RpcErrorCode.DEADLINE_EXCEEDED,
}


class HttpDispatcher(BaseDispatcher):
    """Dispatcher talking to the platform API server over HTTP."""

    transport = "http"

    def __init__(
        self,
        base_url: str,
        *,
        connect_timeout: float = 5.0,
        default_deadline: Optional[float] = None,
        max_connect_retries: int = 2,
        retry_delay: float = 0.1,
        headers: Optional[Dict[str, str]] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        serializer: Optional[JsonMessageSerializer] = None,
    ):
        """
        Args:
            base_url: API server base URL
            connect_timeout: 建连超时（秒）
            default_deadline: 调用方未指定时的截止时间（秒），None 表示不限
            max_connect_retries: 连接失败的最大重试次数
            retry_delay: 重试基础延迟（秒）
            headers: 额外的默认请求头
            http_transport: 自定义 httpx transport（测试时注入 MockTransport）
        """
        super().__init__(default_deadline=default_deadline, serializer=serializer)
        self.base_url = base_url.rstrip("/")
        self.connect_timeout = connect_timeout
        self.max_connect_retries = max_connect_retries
        self.retry_delay = retry_delay
        self.default_headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if headers:
            self.default_headers.update(headers)
        self._http_transport = http_transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """获取或创建HTTP客户端"""
        if self._client is None:
            self._client = httpx.AsyncClient(transport=self._http_transport)
        return self._client

    async def aclose(self) -> None:
        """关闭HTTP客户端"""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    def _build_url(self, service: str, method: str) -> str:
        return f"{self.base_url}/rpc/{service}/{method}"

    def _build_headers(self, service: str, method: str, deadline: Optional[float], ticket: Optional[str]) -> Dict[str, str]:
        headers = {
            **self.default_headers,
            SERVICE_HEADER: service,
            METHOD_HEADER: method,
        }
        if deadline is not None:
            headers[DEADLINE_HEADER] = f"{deadline:g}"
        if ticket:
            headers[TICKET_HEADER] = ticket
        return headers

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
        url = self._build_url(service, method)
        headers = self._build_headers(service, method, deadline, ticket)
        content = self.serializer.dumps({"request": request.to_wire()})
        timeout = httpx.Timeout(deadline, connect=self.connect_timeout)
        client = self._get_client()

        retrying = AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self.max_connect_retries + 1),
            wait=wait_exponential(
                multiplier=self.retry_delay,
                min=self.retry_delay,
                max=self.retry_delay * 8,
            ),
            # ConnectError means the request never reached the server
            retry=retry_if_exception_type(httpx.ConnectError),
            before_sleep=before_sleep_log(_std_logger, logging.WARNING),
        )

        try:
            async for attempt in retrying:
                with attempt:
                    response = await client.post(url, content=content, headers=headers, timeout=timeout)
        except httpx.TimeoutException as exc:
            raise CallError(
                f"Deadline exceeded calling {service}.{method}",
                RpcErrorCode.DEADLINE_EXCEEDED,
                timeout=True,
            ) from exc
        except httpx.TransportError as exc:
            raise CallError(f"Transport error calling {service}.{method}: {exc}") from exc

        return self._handle_response(service, method, response, response_type)

    def _handle_response(self, service: str, method: str, response: httpx.Response, response_type: Type[R]) -> R:
        """Map an HTTP response to a decoded message or an error."""
        try:
            body = self.serializer.loads(response.content)
        except CallError:
            if response.status_code >= 400:
                raise self._status_error(service, method, response.status_code)
            raise

        if not isinstance(body, dict):
            raise CallError(f"Unexpected response body for {service}.{method}", RpcErrorCode.PARSE_ERROR)

        app_error = body.get("application_error")
        if app_error is not None:
            code, detail = self._error_fields(service, method, "application_error", app_error, 0)
            raise APIError(service, code, detail)

        rpc_error = body.get("rpc_error")
        if rpc_error is not None:
            code, detail = self._error_fields(service, method, "rpc_error", rpc_error, RpcErrorCode.UNKNOWN)
            raise CallError(detail, code, timeout=code == RpcErrorCode.DEADLINE_EXCEEDED)

        if response.status_code >= 400:
            raise self._status_error(service, method, response.status_code)

        if "response" not in body:
            raise CallError(f"Missing response for {service}.{method}", RpcErrorCode.PARSE_ERROR)
        return self.serializer.decode_obj(body["response"] or {}, response_type)

    @staticmethod
    def _error_fields(service: str, method: str, kind: str, error: Any, default_code: int) -> Tuple[int, str]:
        """Validate an error body; anything but ``{"code": int, "detail": str}`` is PARSE_ERROR."""
        if not isinstance(error, dict):
            raise CallError(f"Malformed {kind} for {service}.{method}", RpcErrorCode.PARSE_ERROR)
        raw_code = error.get("code", default_code)
        try:
            code = int(raw_code)
        except (TypeError, ValueError):
            raise CallError(
                f"Malformed {kind} code for {service}.{method}: {raw_code!r}",
                RpcErrorCode.PARSE_ERROR,
            ) from None
        return code, str(error.get("detail", ""))

    @staticmethod
    def _status_error(service: str, method: str, status_code: int) -> CallError:
        code = HTTP_STATUS_TO_RPC_CODE.get(status_code, RpcErrorCode.UNKNOWN)
        return CallError(
            f"{service}.{method} failed with HTTP status {status_code}",
            code,
            timeout=code == RpcErrorCode.DEADLINE_EXCEEDED,
        )
