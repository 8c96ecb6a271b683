"""Onboarding and permission check response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from account_onboarding.repos import PermissionStatus


class TemplateInfoResponse(BaseModel):
    region: str
    stack_name: str
    template: str
    hash: str
    signed_url: str
    url_expiry: datetime
    create_stack_url: str
    update_stack_url: str | None = None
    cfn_console_url: str


class PermissionCheckResponse(BaseModel):
    status: PermissionStatus
    info: str


class BatchCheckRequest(BaseModel):
    batch_size: int | None = Field(default=None, ge=1, le=50)


class BatchCheckResponse(BaseModel):
    status_by_account_id: dict[str, PermissionStatus]
    errors_by_account_id: dict[str, str]
