"""
应用身份访问层

Application identity, instance metadata, access tokens, certificates and
signing. RPC-backed functions build the request message, make exactly one
``ctx.call`` and unwrap the response; errors from the call reach the caller
unchanged.
"""
from __future__ import annotations

from application.dtos.app_identity import (
    GetAccessTokenRequest,
    GetAccessTokenResponse,
    GetDefaultGcsBucketNameRequest,
    GetDefaultGcsBucketNameResponse,
    GetPublicCertificateForAppRequest,
    GetPublicCertificateForAppResponse,
    GetServiceAccountNameRequest,
    GetServiceAccountNameResponse,
    SignForAppRequest,
    SignForAppResponse,
)
from application.dtos.modules import GetHostnameRequest, GetHostnameResponse
from application.ports.context import Context
from domain.identity.entity import AccessToken, Certificate
from infrastructure.runtime import environment as runtime_env
from shared.codes import register_error_code_map
from shared.codes.app_identity_codes import APP_IDENTITY_SERVICE, AppIdentityErrorCode
from shared.codes.modules_codes import MODULES_SERVICE, ModulesErrorCode


def app_id(ctx: Context) -> str:
    """Application ID for the current application.

    A plain ID (``"appid"``), with a domain prefix for custom domain
    deployments (``"example.com:appid"``).
    """
    return runtime_env.display_app_id(ctx.fully_qualified_app_id())


def backend_instance(ctx: Context) -> tuple[str, int]:
    """Name and index of the current backend instance, or ("", -1)."""
    index = runtime_env.backend_instance_index(ctx.environment)
    if index == -1:
        return "", -1
    name = version_id(ctx)
    if "." in name:
        name = name[: name.index(".")]
    return name, index


async def backend_hostname(ctx: Context, name: str, index: int) -> str:
    """Standard hostname of the named backend.

    With index -1 the load-balancing hostname is returned.
    """
    instance = "" if index == -1 else str(index)
    return await module_hostname(ctx, module=name, instance=instance)


def default_version_hostname(ctx: Context) -> str:
    """Hostname of the default version, e.g. ``"my-app.appspot.com"``."""
    value = ctx.header(runtime_env.DEFAULT_VERSION_HOSTNAME_HEADER)
    if value:
        return value
    return runtime_env.env_value(runtime_env.DEFAULT_VERSION_HOSTNAME_ENV, ctx.environment)


def module_name(ctx: Context) -> str:
    """Module name of the current instance."""
    return runtime_env.env_value(
        runtime_env.CURRENT_MODULE_ID_ENV, ctx.environment, default=runtime_env.DEFAULT_MODULE
    )


async def module_hostname(ctx: Context, module: str = "", version: str = "", instance: str = "") -> str:
    """Hostname of a module instance.

    An empty ``module`` means the current module; an empty ``version`` the
    current version if valid, otherwise the module's default version; an
    empty ``instance`` gives the load-balancing hostname.
    """
    req = GetHostnameRequest(
        module=module or None,
        version=version or None,
        instance=instance or None,
    )
    res = await ctx.call(MODULES_SERVICE, "GetHostname", req, GetHostnameResponse)
    return res.hostname


def version_id(ctx: Context) -> str:
    """Version ID of the form ``"X.Y"``, without the module name."""
    raw = runtime_env.env_value(runtime_env.CURRENT_VERSION_ID_ENV, ctx.environment)
    return runtime_env.strip_module_prefix(raw)


def instance_id() -> str:
    """A mostly-unique identifier for this instance."""
    return runtime_env.env_value(runtime_env.INSTANCE_ID_ENV)


def datacenter() -> str:
    return runtime_env.env_value(runtime_env.DATACENTER_ENV)


def server_software() -> str:
    """Platform release, e.g. ``"Google App Engine/X.Y.Z"`` or ``"Development/X.Y"``."""
    return runtime_env.env_value(runtime_env.SERVER_SOFTWARE_ENV)


def request_id(ctx: Context) -> str:
    """A string that uniquely identifies the request."""
    value = ctx.header(runtime_env.REQUEST_LOG_ID_HEADER)
    if value:
        return value
    return runtime_env.env_value(runtime_env.REQUEST_LOG_ID_ENV, ctx.environment)


async def access_token(ctx: Context, *scopes: str) -> AccessToken:
    """OAuth2 access token for ``scopes`` on behalf of the app's service account.

    The token expires at ``AccessToken.expiry``.
    """
    req = GetAccessTokenRequest(scope=list(scopes))
    res = await ctx.call(APP_IDENTITY_SERVICE, "GetAccessToken", req, GetAccessTokenResponse)
    return AccessToken.from_expiration_time(res.access_token, res.expiration_time)


async def public_certificates(ctx: Context) -> list[Certificate]:
    """Public certificates for the app, usable to verify ``sign_bytes`` output."""
    req = GetPublicCertificateForAppRequest()
    res = await ctx.call(
        APP_IDENTITY_SERVICE,
        "GetPublicCertificatesForApp",
        req,
        GetPublicCertificateForAppResponse,
    )
    return [
        Certificate(key_name=pc.key_name, data=pc.x509_certificate_pem.encode("utf-8"))
        for pc in res.public_certificate_list
    ]


async def service_account(ctx: Context) -> str:
    """Service account name as an email, typically ``app_id@appspot.gserviceaccount.com``."""
    req = GetServiceAccountNameRequest()
    res = await ctx.call(APP_IDENTITY_SERVICE, "GetServiceAccountName", req, GetServiceAccountNameResponse)
    return res.service_account_name


async def sign_bytes(ctx: Context, data: bytes) -> tuple[str, bytes]:
    """Sign ``data`` with a private key unique to the app.

    Returns ``(key_name, signature)``.
    """
    req = SignForAppRequest(bytes_to_sign=data)
    res = await ctx.call(APP_IDENTITY_SERVICE, "SignForApp", req, SignForAppResponse)
    return res.key_name, res.signature_bytes


async def default_gcs_bucket_name(ctx: Context) -> str:
    req = GetDefaultGcsBucketNameRequest()
    res = await ctx.call(
        APP_IDENTITY_SERVICE,
        "GetDefaultGcsBucketName",
        req,
        GetDefaultGcsBucketNameResponse,
    )
    return res.default_gcs_bucket_name


def _register_error_codes() -> None:
    register_error_code_map(APP_IDENTITY_SERVICE, AppIdentityErrorCode)
    register_error_code_map(MODULES_SERVICE, ModulesErrorCode)


_register_error_codes()


__all__ = [
    "app_id",
    "backend_instance",
    "backend_hostname",
    "default_version_hostname",
    "module_name",
    "module_hostname",
    "version_id",
    "instance_id",
    "datacenter",
    "server_software",
    "request_id",
    "access_token",
    "public_certificates",
    "service_account",
    "sign_bytes",
    "default_gcs_bucket_name",
]
