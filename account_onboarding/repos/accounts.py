"""Repository for AWS account records."""

from __future__ import annotations

import base64
import logging
from datetime import datetime, timezone
from typing import Optional

import shortuuid
from redis.asyncio import Redis
from redis.exceptions import WatchError

from account_onboarding.config import Settings, get_settings
from account_onboarding.crypto import EnvelopeCipher
from account_onboarding.errors import ConflictError, NotFoundError
from account_onboarding.storage import RedisFactory

from .models import AccountRecord, AccountUpdate, NewAccount, PermissionStatus


ACCOUNT_KEY_TEMPLATE = "v1:accounts:{id}"
ACCOUNT_INDEX_KEY = "v1:accounts"

_TEXT_FIELDS = (
    "account_id",
    "name",
    "description",
    "cfn_stack_name",
    "cfn_stack_id",
    "role_arn",
    "vpc_id",
    "subnet_id",
    "encryption_key_arn",
    "created_by",
    "updated_by",
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccountRepository:
    """Persist account records in Redis hashes.

    Writes use optimistic concurrency: :meth:`update` must carry the ``rev`` the
    caller last read, and a mismatch raises :class:`ConflictError` without
    touching the stored hash.
    """

    def __init__(self, redis: Optional[Redis] = None, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self._redis = redis or RedisFactory.client(settings)
        self._cipher = EnvelopeCipher(settings.decode_encryption_key())

    async def create(self, account: NewAccount) -> AccountRecord:
        account_uid = shortuuid.uuid()
        key = ACCOUNT_KEY_TEMPLATE.format(id=account_uid)
        now = _utcnow().isoformat()
        payload: dict[str, bytes] = {
            "rev": b"0",
            "account_id": account.account_id.encode(),
            "name": account.name.encode(),
            "description": account.description.encode(),
            "cfn_stack_name": account.cfn_stack_name.encode(),
            "permission_status": PermissionStatus.NEEDSONBOARD.value.encode(),
            "created_at": now.encode(),
            "updated_at": now.encode(),
        }
        if account.role_arn:
            payload["role_arn"] = account.role_arn.encode()
        if account.external_id:
            payload["external_id"] = self._encrypt(key, account.external_id)
        if account.created_by:
            payload["created_by"] = account.created_by.encode()
            payload["updated_by"] = account.created_by.encode()

        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.hset(key, mapping=payload)
            pipe.sadd(ACCOUNT_INDEX_KEY, account_uid)
            await pipe.execute()

        return await self.must_find(account_uid)

    async def find(self, account_uid: str) -> AccountRecord | None:
        key = ACCOUNT_KEY_TEMPLATE.format(id=account_uid)
        raw = await self._redis.hgetall(key)
        if not raw:
            return None
        return self._decode(account_uid, raw)

    async def must_find(self, account_uid: str) -> AccountRecord:
        record = await self.find(account_uid)
        if record is None:
            raise NotFoundError(
                f"account {account_uid} does not exist",
                user_message=f"Account with id '{account_uid}' does not exist",
            )
        return record

    async def list(self) -> list[AccountRecord]:
        members = await self._redis.smembers(ACCOUNT_INDEX_KEY)
        ids = sorted(member.decode() if isinstance(member, bytes) else member for member in members)
        records = []
        for account_uid in ids:
            record = await self.find(account_uid)
            if record is not None:
                records.append(record)
        return records

    async def update(self, update: AccountUpdate) -> AccountRecord:
        key = ACCOUNT_KEY_TEMPLATE.format(id=update.id)
        async with self._redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                raw = await pipe.hgetall(key)
                if not raw:
                    raise NotFoundError(
                        f"account {update.id} does not exist",
                        user_message=f"Account with id '{update.id}' does not exist",
                    )
                current = self._decode(update.id, raw)
                if current.rev != update.rev:
                    raise ConflictError(
                        f"stale revision {update.rev} for account {update.id} (stored {current.rev})",
                        user_message="The account was just updated by another request, please reload and retry",
                    )

                mapping = self._encode_changes(key, update)
                mapping["rev"] = str(current.rev + 1).encode()
                mapping["updated_at"] = _utcnow().isoformat().encode()
                if update.updated_by:
                    mapping["updated_by"] = update.updated_by.encode()

                pipe.multi()
                pipe.hset(key, mapping=mapping)
                await pipe.execute()
            except WatchError as exc:
                raise ConflictError(
                    f"account {update.id} changed during update",
                    user_message="The account was just updated by another request, please reload and retry",
                    cause=exc,
                ) from exc

        logger.debug("account_updated", extra={"account": update.id, "rev": current.rev + 1})
        return await self.must_find(update.id)

    def _encode_changes(self, key: str, update: AccountUpdate) -> dict[str, bytes]:
        mapping: dict[str, bytes] = {}
        for name, value in update.changes().items():
            if name == "external_id":
                mapping[name] = self._encrypt(key, str(value))
            elif isinstance(value, PermissionStatus):
                mapping[name] = value.value.encode()
            else:
                mapping[name] = str(value).encode()
        return mapping

    def _encrypt(self, key: str, value: str) -> bytes:
        return base64.b64encode(self._cipher.encrypt_text(value, context=key))

    def _decode(self, account_uid: str, raw: dict[bytes, bytes]) -> AccountRecord:
        key = ACCOUNT_KEY_TEMPLATE.format(id=account_uid)
        values = {
            (name.decode() if isinstance(name, bytes) else name): value for name, value in raw.items()
        }

        def text(name: str) -> str | None:
            value = values.get(name)
            if not value:
                return None
            return value.decode() if isinstance(value, bytes) else value

        def timestamp(name: str) -> datetime | None:
            value = text(name)
            return datetime.fromisoformat(value) if value else None

        external_id = None
        if values.get("external_id"):
            external_id = self._cipher.decrypt_text(base64.b64decode(values["external_id"]), context=key)

        texts = {name: text(name) for name in _TEXT_FIELDS}
        return AccountRecord(
            id=account_uid,
            rev=int(text("rev") or 0),
            account_id=texts["account_id"] or "",
            name=texts["name"] or "",
            description=texts["description"] or "",
            external_id=external_id,
            cfn_stack_name=texts["cfn_stack_name"] or "",
            cfn_stack_id=texts["cfn_stack_id"],
            role_arn=texts["role_arn"],
            vpc_id=texts["vpc_id"],
            subnet_id=texts["subnet_id"],
            encryption_key_arn=texts["encryption_key_arn"],
            permission_status=PermissionStatus.parse(text("permission_status")),
            created_at=timestamp("created_at"),
            created_by=texts["created_by"],
            updated_at=timestamp("updated_at"),
            updated_by=texts["updated_by"],
        )
