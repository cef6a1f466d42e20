"""
配置文件 - 项目配置管理
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class RpcTlsSettings(BaseModel):
    enabled: bool = False
    ca: Optional[str] = None


class RpcSettings(BaseModel):
    # http or grpc
    transport: str = "http"

    # HTTP transport
    base_url: str = "http://localhost:10001"
    connect_timeout: float = 5.0
    # Used when the caller sets no deadline
    default_deadline: Optional[float] = None
    max_connect_retries: int = 2
    retry_delay: float = 0.1

    # gRPC transport
    grpc_target: str = "localhost:10002"
    tls: RpcTlsSettings = Field(default_factory=RpcTlsSettings)

    @field_validator("transport")
    @classmethod
    def _normalize_transport(cls, v: str) -> str:
        value = (v or "http").strip().lower()
        if value not in {"http", "grpc"}:
            raise ValueError(f"unsupported rpc transport: {v}")
        return value


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = Field(default="Platform Identity Client", validation_alias="PROJECT_NAME")
    VERSION: str = Field(default="1.0.0", validation_alias="VERSION")
    DEBUG: bool = Field(default=False, validation_alias="DEBUG")
    ENVIRONMENT: str = Field(default="development", validation_alias="ENVIRONMENT")

    # 分组配置：RPC 采用嵌套模型，环境变量形如 RPC__BASE_URL
    rpc: RpcSettings = Field(default_factory=RpcSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


settings = Settings()
