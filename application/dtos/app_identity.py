"""
app_identity_service request/response messages.

Field names follow the service's published schema; response fields default
to the zero value of their type when the service leaves them out.
"""
from __future__ import annotations

from typing import Optional

from pydantic import Field

from application.dtos.base import Message


class GetAccessTokenRequest(Message):
    scope: list[str] = Field(default_factory=list)
    service_account_id: Optional[int] = None
    service_account_name: Optional[str] = None


class GetAccessTokenResponse(Message):
    access_token: str = ""
    expiration_time: int = 0


class GetPublicCertificateForAppRequest(Message):
    pass


class PublicCertificate(Message):
    key_name: str = ""
    x509_certificate_pem: str = ""


class GetPublicCertificateForAppResponse(Message):
    public_certificate_list: list[PublicCertificate] = Field(default_factory=list)
    max_client_cache_time_in_second: Optional[int] = None


class GetServiceAccountNameRequest(Message):
    pass


class GetServiceAccountNameResponse(Message):
    service_account_name: str = ""


class SignForAppRequest(Message):
    bytes_to_sign: bytes = b""


class SignForAppResponse(Message):
    key_name: str = ""
    signature_bytes: bytes = b""


class GetDefaultGcsBucketNameRequest(Message):
    pass


class GetDefaultGcsBucketNameResponse(Message):
    default_gcs_bucket_name: str = ""
