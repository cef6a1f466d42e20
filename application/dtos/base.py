"""
Base class for RPC request/response messages (Pydantic v2).

Optional fields left as None are omitted on the wire; bytes travel as
base64 in JSON.
"""
from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict


class Message(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-compatible dict with unset optional fields dropped."""
        return json.loads(self.model_dump_json(exclude_none=True))

    def to_wire_bytes(self) -> bytes:
        return self.model_dump_json(exclude_none=True).encode("utf-8")
