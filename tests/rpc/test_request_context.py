from typing import Optional

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from api.middleware.context import PlatformContextMiddleware, get_platform_context
from application import identity
from application.ports.context import Context
from domain.common.exceptions import ContextUnavailableError
from infrastructure.rpc import GrpcDispatcher, HttpDispatcher, create_dispatcher, get_dispatcher, shutdown_dispatcher
from infrastructure.rpc.base import BaseDispatcher
from infrastructure.rpc.context import RequestContext, get_current_context, new_context


class RecordingDispatcher(BaseDispatcher):
    transport = "recording"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls = []

    async def _send(self, service, method, request, response_type, *, deadline: Optional[float], ticket: Optional[str]):
        self.calls.append({"service": service, "method": method, "deadline": deadline, "ticket": ticket})
        return response_type(service_account_name="recorded@appspot.gserviceaccount.com")


def test_request_context_satisfies_context_protocol():
    ctx = RequestContext(RecordingDispatcher(), environment={})
    assert isinstance(ctx, Context)


def test_headers_are_case_insensitive():
    ctx = RequestContext(RecordingDispatcher(), headers={"X-AppEngine-Api-Ticket": "t-1"}, environment={})
    assert ctx.header("x-appengine-api-ticket") == "t-1"
    assert ctx.api_ticket == "t-1"
    assert ctx.header("missing") is None


def test_fully_qualified_app_id_from_environment():
    ctx = RequestContext(RecordingDispatcher(), environment={"APPLICATION_ID": "s~example.com:appid"})
    assert ctx.fully_qualified_app_id() == "s~example.com:appid"
    assert identity.app_id(ctx) == "example.com:appid"


@pytest.mark.asyncio
async def test_call_forwards_deadline_and_ticket():
    dispatcher = RecordingDispatcher(default_deadline=9.0)
    ctx = RequestContext(dispatcher, headers={"X-AppEngine-Api-Ticket": "t-2"}, environment={}, deadline=1.5)

    assert await identity.service_account(ctx) == "recorded@appspot.gserviceaccount.com"
    assert dispatcher.calls == [{
        "service": "app_identity_service",
        "method": "GetServiceAccountName",
        "deadline": 1.5,
        "ticket": "t-2",
    }]


@pytest.mark.asyncio
async def test_dispatcher_default_deadline_applies_when_context_has_none():
    dispatcher = RecordingDispatcher(default_deadline=9.0)
    ctx = new_context(dispatcher=dispatcher, environment={})
    await identity.service_account(ctx)
    assert dispatcher.calls[0]["deadline"] == 9.0
    assert dispatcher.calls[0]["ticket"] is None


def test_get_current_context_outside_request():
    with pytest.raises(ContextUnavailableError):
        get_current_context()


def test_middleware_binds_context_per_request():
    dispatcher = RecordingDispatcher()
    app = FastAPI()
    app.add_middleware(PlatformContextMiddleware, dispatcher=dispatcher, deadline=2.0)

    @app.get("/whoami")
    async def whoami(ctx: RequestContext = Depends(get_platform_context)):
        assert get_current_context() is ctx
        return {
            "request_id": identity.request_id(ctx),
            "service_account": await identity.service_account(ctx),
        }

    client = TestClient(app)
    resp = client.get("/whoami", headers={
        "X-AppEngine-Request-Log-Id": "log-1",
        "X-AppEngine-Api-Ticket": "t-3",
    })

    assert resp.status_code == 200
    assert resp.json() == {"request_id": "log-1", "service_account": "recorded@appspot.gserviceaccount.com"}
    assert dispatcher.calls[0]["ticket"] == "t-3"
    assert dispatcher.calls[0]["deadline"] == 2.0


def test_create_dispatcher_by_transport():
    assert isinstance(create_dispatcher("http"), HttpDispatcher)
    assert isinstance(create_dispatcher("grpc"), GrpcDispatcher)
    with pytest.raises(ValueError):
        create_dispatcher("smoke-signals")


@pytest.mark.asyncio
async def test_process_dispatcher_lifecycle(monkeypatch):
    import infrastructure.rpc as rpc

    monkeypatch.setattr(rpc, "_dispatcher", None)
    first = get_dispatcher()
    assert isinstance(first, HttpDispatcher)
    assert get_dispatcher() is first

    ctx = new_context({"X-AppEngine-Api-Ticket": "t-4"}, environment={})
    assert ctx.dispatcher is first
    assert ctx.api_ticket == "t-4"

    closed = []
    real_aclose = first.aclose

    async def tracking_aclose():
        closed.append(True)
        await real_aclose()

    monkeypatch.setattr(first, "aclose", tracking_aclose)
    await shutdown_dispatcher()
    assert closed == [True]
    assert rpc._dispatcher is None

    second = get_dispatcher()
    assert second is not first
    await shutdown_dispatcher()


def test_dependency_without_middleware_binds_current_context(monkeypatch):
    import infrastructure.rpc as rpc

    dispatcher = RecordingDispatcher()
    monkeypatch.setattr(rpc, "_dispatcher", dispatcher)
    app = FastAPI()

    @app.get("/ctx")
    async def read_ctx(ctx: RequestContext = Depends(get_platform_context)):
        return {
            "bound": get_current_context() is ctx,
            "service_account": await identity.service_account(get_current_context()),
        }

    resp = TestClient(app).get("/ctx", headers={"X-AppEngine-Api-Ticket": "t-5"})
    assert resp.status_code == 200
    assert resp.json() == {"bound": True, "service_account": "recorded@appspot.gserviceaccount.com"}
    assert dispatcher.calls[0]["ticket"] == "t-5"
