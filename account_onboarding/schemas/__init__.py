"""Pydantic schema exports."""

from .accounts import AccountCreateRequest, AccountResponse, AccountUpdateRequest
from .permissions import BatchCheckRequest, BatchCheckResponse, PermissionCheckResponse, TemplateInfoResponse

__all__ = [
    "AccountCreateRequest",
    "AccountResponse",
    "AccountUpdateRequest",
    "BatchCheckRequest",
    "BatchCheckResponse",
    "PermissionCheckResponse",
    "TemplateInfoResponse",
]
