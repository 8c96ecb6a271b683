"""Repository dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum


class PermissionStatus(str, Enum):
    CURRENT = "CURRENT"
    NEEDSUPDATE = "NEEDSUPDATE"
    NEEDSONBOARD = "NEEDSONBOARD"
    NOSTACKNAME = "NOSTACKNAME"
    PENDING = "PENDING"
    ERRORED = "ERRORED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> "PermissionStatus":
        """Decode a stored value; legacy ``ERROR`` maps to ``ERRORED``, anything else unknown to ``UNKNOWN``."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.UNKNOWN
        if value == "ERROR":
            return cls.ERRORED
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @property
    def detail(self) -> "StatusDetail":
        return STATUS_DETAILS[self]


@dataclass(frozen=True)
class StatusDetail:
    display: str
    color: str
    tip: str
    spinner: bool = False


STATUS_DETAILS = {
    PermissionStatus.CURRENT: StatusDetail("Up-to-Date", "green", "IAM Role permissions are up-to-date."),
    PermissionStatus.NEEDSUPDATE: StatusDetail(
        "Needs Update",
        "orange",
        "This account needs updated IAM Role permissions. Some functionalities may not work until update.",
    ),
    PermissionStatus.NEEDSONBOARD: StatusDetail(
        "Needs Onboarding", "purple", "This account needs to be onboarded before it can be used."
    ),
    PermissionStatus.NOSTACKNAME: StatusDetail(
        "Stack Name Missing",
        "yellow",
        "This account's onboarding CloudFormation stack name is missing. Please add it in the account details.",
    ),
    PermissionStatus.PENDING: StatusDetail(
        "Pending", "yellow", "The account is being modified. Please wait a moment.", spinner=True
    ),
    PermissionStatus.ERRORED: StatusDetail(
        "Error", "red", "The account encountered an error while checking IAM role permissions."
    ),
    PermissionStatus.UNKNOWN: StatusDetail("Unknown", "grey", "Something went wrong."),
}

# Fields harvested from the onboarding stack; missing any of them means the
# account still needs a finish-onboarding pass.
ONBOARDING_FIELDS = ("vpc_id", "subnet_id", "encryption_key_arn", "cfn_stack_id", "role_arn", "external_id")


@dataclass(slots=True)
class AccountRecord:
    id: str
    rev: int
    account_id: str
    name: str = ""
    description: str = ""
    external_id: str | None = None
    cfn_stack_name: str = ""
    cfn_stack_id: str | None = None
    role_arn: str | None = None
    vpc_id: str | None = None
    subnet_id: str | None = None
    encryption_key_arn: str | None = None
    permission_status: PermissionStatus = PermissionStatus.NEEDSONBOARD
    created_at: datetime | None = None
    created_by: str | None = None
    updated_at: datetime | None = None
    updated_by: str | None = None

    @property
    def is_onboarded(self) -> bool:
        """True once every permission field a workload needs has been populated."""
        return all(
            getattr(self, name)
            for name in ("role_arn", "external_id", "vpc_id", "subnet_id", "encryption_key_arn")
        )

    @property
    def missing_onboarding_fields(self) -> list[str]:
        return [name for name in ONBOARDING_FIELDS if not getattr(self, name)]


@dataclass(slots=True)
class AccountUpdate:
    """Partial update; ``None`` means leave the stored value untouched."""

    id: str
    rev: int
    name: str | None = None
    description: str | None = None
    external_id: str | None = None
    cfn_stack_name: str | None = None
    cfn_stack_id: str | None = None
    role_arn: str | None = None
    vpc_id: str | None = None
    subnet_id: str | None = None
    encryption_key_arn: str | None = None
    permission_status: PermissionStatus | None = None
    updated_by: str | None = None

    def changes(self) -> dict[str, object]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in {"id", "rev", "updated_by"} and getattr(self, f.name) is not None
        }


@dataclass(slots=True)
class NewAccount:
    account_id: str
    name: str = ""
    description: str = ""
    external_id: str | None = None
    cfn_stack_name: str = ""
    role_arn: str | None = None
    created_by: str | None = None
