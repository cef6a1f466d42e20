from __future__ import annotations

import json
from typing import Any, Type, TypeVar

from pydantic import ValidationError

from application.dtos.base import Message
from domain.common.exceptions import CallError
from shared.codes import RpcErrorCode

R = TypeVar("R", bound=Message)


class JsonMessageSerializer:
    """Encodes messages as compact JSON; decode failures become PARSE_ERROR."""

    def dumps(self, obj: Any) -> bytes:
        if isinstance(obj, Message):
            return obj.to_wire_bytes()
        return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    def loads(self, data: bytes) -> Any:
        try:
            return json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CallError(f"Malformed response payload: {e}", RpcErrorCode.PARSE_ERROR) from e

    def decode(self, data: bytes, response_type: Type[R]) -> R:
        try:
            return response_type.model_validate_json(data)
        except ValidationError as e:
            raise CallError(
                f"Cannot decode {response_type.__name__}: {e.error_count()} error(s)",
                RpcErrorCode.PARSE_ERROR,
            ) from e

    def decode_obj(self, obj: Any, response_type: Type[R]) -> R:
        return self.decode(self.dumps(obj), response_type)
