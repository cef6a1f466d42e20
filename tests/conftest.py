"""Shared fixtures for accessor and dispatcher tests."""
from typing import Any, Dict, Optional, Tuple

import pytest

from application.dtos.base import Message


class FakeContext:
    """In-memory Context: records calls, returns canned responses or raises."""

    def __init__(
        self,
        responses: Optional[Dict[Tuple[str, str], Message]] = None,
        error: Optional[Exception] = None,
        headers: Optional[Dict[str, str]] = None,
        environment: Optional[Dict[str, str]] = None,
        full_app_id: str = "s~test-app",
    ):
        self.responses = responses or {}
        self.error = error
        self._headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.environment = environment or {}
        self._full_app_id = full_app_id
        self.calls: list[Tuple[str, str, Message, Any]] = []

    async def call(self, service, method, request, response_type):
        self.calls.append((service, method, request, response_type))
        if self.error is not None:
            raise self.error
        return self.responses[(service, method)]

    def fully_qualified_app_id(self) -> str:
        return self._full_app_id

    def header(self, name: str) -> Optional[str]:
        return self._headers.get(name.lower())


@pytest.fixture
def make_context():
    def _make(**kwargs) -> FakeContext:
        return FakeContext(**kwargs)
    return _make
