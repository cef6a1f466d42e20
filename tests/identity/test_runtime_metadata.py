import pytest

from application import identity
from infrastructure.runtime.environment import (
    backend_instance_index,
    display_app_id,
    parse_full_app_id,
    strip_module_prefix,
)


@pytest.mark.parametrize(
    "full_app_id, expected",
    [
        ("s~appid", "appid"),
        ("dev~appid", "appid"),
        ("appid", "appid"),
        ("s~example.com:appid", "example.com:appid"),
        ("example.com:appid", "example.com:appid"),
    ],
)
def test_app_id_strips_partition_keeps_domain(make_context, full_app_id, expected):
    ctx = make_context(full_app_id=full_app_id)
    assert identity.app_id(ctx) == expected
    assert ctx.calls == []


def test_parse_full_app_id_parts():
    assert parse_full_app_id("s~example.com:appid") == ("s", "example.com", "appid")
    assert parse_full_app_id("appid") == ("", "", "appid")
    assert display_app_id("") == ""


def test_version_id_drops_module_prefix(make_context):
    ctx = make_context(environment={"CURRENT_VERSION_ID": "worker:v2.4321"})
    assert identity.version_id(ctx) == "v2.4321"
    assert strip_module_prefix("v1.1") == "v1.1"


def test_module_name_defaults_to_default(make_context):
    assert identity.module_name(make_context()) == "default"
    assert identity.module_name(make_context(environment={"CURRENT_MODULE_ID": "worker"})) == "worker"


def test_backend_instance_not_a_backend(make_context):
    ctx = make_context(environment={"CURRENT_VERSION_ID": "v1.123", "INSTANCE_ID": "00c61b117c"})
    assert identity.backend_instance(ctx) == ("", -1)


def test_backend_instance_name_and_index(make_context):
    ctx = make_context(environment={
        "BACKEND_ID": "crawler",
        "CURRENT_VERSION_ID": "crawler.1234",
        "INSTANCE_ID": "3",
    })
    assert identity.backend_instance(ctx) == ("crawler", 3)


def test_backend_instance_index_requires_numeric_instance():
    assert backend_instance_index({"BACKEND_ID": "crawler", "INSTANCE_ID": "abc"}) == -1
    assert backend_instance_index({}) == -1


def test_default_version_hostname_prefers_request_header(make_context):
    ctx = make_context(
        headers={"x-appengine-default-version-hostname": "test-app.appspot.com"},
        environment={"DEFAULT_VERSION_HOSTNAME": "localhost:8080"},
    )
    assert identity.default_version_hostname(ctx) == "test-app.appspot.com"


def test_default_version_hostname_falls_back_to_env(make_context):
    ctx = make_context(environment={"DEFAULT_VERSION_HOSTNAME": "localhost:8080"})
    assert identity.default_version_hostname(ctx) == "localhost:8080"


def test_request_id_from_header_then_env(make_context):
    ctx = make_context(headers={"X-AppEngine-Request-Log-Id": "5f1e2d"})
    assert identity.request_id(ctx) == "5f1e2d"
    ctx = make_context(environment={"REQUEST_LOG_ID": "abc123"})
    assert identity.request_id(ctx) == "abc123"
    assert identity.request_id(make_context()) == ""


def test_process_wide_identifiers_read_environment(monkeypatch):
    monkeypatch.setenv("INSTANCE_ID", "00c61b117c")
    monkeypatch.setenv("DATACENTER", "us2")
    monkeypatch.setenv("SERVER_SOFTWARE", "Google App Engine/1.9.0")
    assert identity.instance_id() == "00c61b117c"
    assert identity.datacenter() == "us2"
    assert identity.server_software() == "Google App Engine/1.9.0"


def test_process_wide_identifiers_empty_when_unset(monkeypatch):
    for key in ("INSTANCE_ID", "DATACENTER", "SERVER_SOFTWARE"):
        monkeypatch.delenv(key, raising=False)
    assert identity.instance_id() == ""
    assert identity.datacenter() == ""
    assert identity.server_software() == ""
