"""Account endpoint schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from account_onboarding.repos import AccountRecord, PermissionStatus


class AccountCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    account_id: str = Field(..., pattern=r"^\d{12}$")
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    external_id: str | None = Field(default=None, min_length=1, max_length=300)
    cfn_stack_name: str = Field(default="", max_length=300)
    role_arn: str | None = Field(default=None, min_length=10, max_length=300)


class AccountUpdateRequest(BaseModel):
    """Partial admin update; only the fields present in the payload are written."""

    model_config = ConfigDict(extra="forbid")

    rev: int = Field(..., ge=0)
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, min_length=1)
    role_arn: str | None = Field(default=None, min_length=10, max_length=300)
    external_id: str | None = Field(default=None, min_length=1, max_length=300)
    cfn_stack_name: str | None = Field(default=None, min_length=1, max_length=300)
    vpc_id: str | None = Field(default=None, min_length=12, max_length=21)
    subnet_id: str | None = Field(default=None, min_length=15, max_length=24)
    encryption_key_arn: str | None = Field(default=None, min_length=1, max_length=100)


class StatusDetailResponse(BaseModel):
    key: PermissionStatus
    display: str
    color: str
    tip: str
    spinner: bool


class AccountResponse(BaseModel):
    id: str
    rev: int
    account_id: str
    name: str
    description: str
    cfn_stack_name: str
    cfn_stack_id: str | None = None
    role_arn: str | None = None
    vpc_id: str | None = None
    subnet_id: str | None = None
    encryption_key_arn: str | None = None
    permission_status: PermissionStatus
    permission_status_detail: StatusDetailResponse
    onboarded: bool
    created_at: datetime | None = None
    created_by: str | None = None
    updated_at: datetime | None = None
    updated_by: str | None = None

    @classmethod
    def from_record(cls, record: AccountRecord) -> "AccountResponse":
        detail = record.permission_status.detail
        return cls(
            id=record.id,
            rev=record.rev,
            account_id=record.account_id,
            name=record.name,
            description=record.description,
            cfn_stack_name=record.cfn_stack_name,
            cfn_stack_id=record.cfn_stack_id,
            role_arn=record.role_arn,
            vpc_id=record.vpc_id,
            subnet_id=record.subnet_id,
            encryption_key_arn=record.encryption_key_arn,
            permission_status=record.permission_status,
            permission_status_detail=StatusDetailResponse(
                key=record.permission_status,
                display=detail.display,
                color=detail.color,
                tip=detail.tip,
                spinner=detail.spinner,
            ),
            onboarded=record.is_onboarded,
            created_at=record.created_at,
            created_by=record.created_by,
            updated_at=record.updated_at,
            updated_by=record.updated_by,
        )
