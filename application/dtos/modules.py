"""
modules service request/response messages.
"""
from __future__ import annotations

from typing import Optional

from application.dtos.base import Message


class GetHostnameRequest(Message):
    module: Optional[str] = None
    version: Optional[str] = None
    instance: Optional[str] = None


class GetHostnameResponse(Message):
    hostname: str = ""
