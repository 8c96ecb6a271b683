"""S3 object store used to publish rendered templates."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Sequence

import boto3

from account_onboarding.config import Settings, get_settings


@dataclass(frozen=True)
class ObjectRef:
    bucket: str
    key: str


class S3Service:
    def __init__(self, s3_client=None, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self._s3 = s3_client or boto3.client("s3", region_name=settings.aws_region)

    async def put_object(self, *, bucket: str, key: str, body: str | bytes) -> None:
        payload = body.encode("utf-8") if isinstance(body, str) else body
        await asyncio.to_thread(self._s3.put_object, Bucket=bucket, Key=key, Body=payload)

    async def sign(self, files: Sequence[ObjectRef], *, expire_seconds: int) -> list[str]:
        """Return one pre-signed GET URL per entry of ``files``, in order."""
        return [await asyncio.to_thread(self._presign, ref, expire_seconds) for ref in files]

    def _presign(self, ref: ObjectRef, expire_seconds: int) -> str:
        return self._s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": ref.bucket, "Key": ref.key},
            ExpiresIn=expire_seconds,
        )


__all__ = ["ObjectRef", "S3Service"]
