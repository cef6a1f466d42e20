from __future__ import annotations

from typing import Optional, Sequence, Tuple, Type, TypeVar

import grpc

from application.dtos.base import Message
from domain.common.exceptions import APIError, CallError
from infrastructure.rpc.base import BaseDispatcher
from infrastructure.rpc.serializers import JsonMessageSerializer
from shared.codes import RpcErrorCode


R = TypeVar("R", bound=Message)

APPLICATION_ERROR_META_KEY = "x-application-error-code"
TICKET_META_KEY = "x-appengine-api-ticket"


def _grpc_status_to_rpc_code(status: grpc.StatusCode) -> RpcErrorCode:
    mapping = {
        grpc.StatusCode.DEADLINE_EXCEEDED: RpcErrorCode.DEADLINE_EXCEEDED,
        grpc.StatusCode.UNIMPLEMENTED: RpcErrorCode.CALL_NOT_FOUND,
        grpc.StatusCode.PERMISSION_DENIED: RpcErrorCode.SECURITY_VIOLATION,
        grpc.StatusCode.UNAUTHENTICATED: RpcErrorCode.SECURITY_VIOLATION,
        grpc.StatusCode.RESOURCE_EXHAUSTED: RpcErrorCode.OVER_QUOTA,
        grpc.StatusCode.CANCELLED: RpcErrorCode.CANCELLED,
        grpc.StatusCode.INVALID_ARGUMENT: RpcErrorCode.BAD_REQUEST,
    }
    return mapping.get(status, RpcErrorCode.UNKNOWN)


def _application_error_code(metadata: Optional[Sequence[Tuple[str, str]]]) -> Optional[int]:
    for key, value in metadata or ():
        if key == APPLICATION_ERROR_META_KEY:
            try:
                return int(value)
            except (TypeError, ValueError):
                return None
    return None


class GrpcDispatcher(BaseDispatcher):
    """Dispatcher issuing generic unary calls on ``/{service}/{method}``.

    Payloads are the JSON encoding of the messages; the channel is created
    lazily and shared by all calls.
    """

    transport = "grpc"

    def __init__(
        self,
        target: str,
        *,
        default_deadline: Optional[float] = None,
        root_certificates: Optional[bytes] = None,
        secure: bool = False,
        options: Optional[Sequence[Tuple[str, object]]] = None,
        serializer: Optional[JsonMessageSerializer] = None,
    ) -> None:
        super().__init__(default_deadline=default_deadline, serializer=serializer)
        self.target = target
        self.secure = secure or root_certificates is not None
        self._root_certificates = root_certificates
        self._options = list(options or [])
        self._channel: Optional[grpc.aio.Channel] = None

    def _get_channel(self) -> grpc.aio.Channel:
        if self._channel is None:
            if self.secure:
                creds = grpc.ssl_channel_credentials(root_certificates=self._root_certificates)
                self._channel = grpc.aio.secure_channel(self.target, creds, options=self._options)
            else:
                self._channel = grpc.aio.insecure_channel(self.target, options=self._options)
        return self._channel

    async def aclose(self) -> None:
        if self._channel is not None:
            try:
                await self._channel.close()
            finally:
                self._channel = None

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
        # No serializers: payloads travel as raw bytes
        stub = self._get_channel().unary_unary(f"/{service}/{method}")
        metadata = ((TICKET_META_KEY, ticket),) if ticket else None
        try:
            payload = await stub(self.serializer.dumps(request), timeout=deadline, metadata=metadata)
        except grpc.aio.AioRpcError as exc:
            raise self._map_error(service, method, exc) from exc
        return self.serializer.decode(payload, response_type)

    @staticmethod
    def _map_error(service: str, method: str, exc: grpc.aio.AioRpcError) -> Exception:
        app_code = _application_error_code(exc.trailing_metadata())
        if app_code is not None:
            return APIError(service, app_code, exc.details() or "")
        status = exc.code()
        code = _grpc_status_to_rpc_code(status)
        detail = exc.details() or f"{service}.{method} failed with {status.name}"
        return CallError(detail, code, timeout=code == RpcErrorCode.DEADLINE_EXCEEDED)
