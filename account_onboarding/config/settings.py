"""Application settings using Pydantic settings management."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment configuration for the account onboarding service.

    Instances are frozen; components receive one at construction time and never
    look keys up by name afterwards.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ONBOARD_",
        frozen=True,
        extra="ignore",
    )

    app_name: str = Field(default="aws-account-onboarding")
    environment: str = Field(default="dev")

    redis_url: str = Field(default="redis://localhost:6379/0")
    encryption_key: str = Field(
        ...,
        description="Base64 encoded 256-bit key for AES-GCM encryption of account external ids.",
    )

    aws_region: str = Field(default="us-east-1")
    template_bucket: str = Field(
        ..., description="S3 bucket receiving the rendered onboarding templates before they are signed."
    )
    namespace: str = Field(default="onboard", description="Solution namespace used in stack and role names.")
    main_account_id: str = Field(..., min_length=12, max_length=12)
    api_handler_role_arn: str = Field(...)
    workflow_role_arn: str = Field(...)

    default_external_id: str = Field(default="workbench")
    signed_url_expiry_seconds: int = Field(default=12 * 60 * 60, ge=60, le=7 * 24 * 60 * 60)
    batch_size: int = Field(default=5, ge=1)
    check_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Upper bound for a single account's permission check inside a batch.",
    )

    django_debug: bool = Field(
        default=False,
        description="Mirror Django's DEBUG flag so both settings derive from the same env var.",
    )

    def decode_encryption_key(self) -> bytes:
        import base64

        return base64.b64decode(self.encryption_key)

    @model_validator(mode="after")
    def validate_crypto_material(self) -> "Settings":
        encryption_len = len(self.decode_encryption_key())
        if encryption_len not in {16, 24, 32}:
            raise ValueError("ONBOARD_ENCRYPTION_KEY must decode to 16, 24, or 32 bytes (128/192/256-bit).")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
