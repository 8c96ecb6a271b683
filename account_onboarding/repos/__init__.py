"""Repositories for persistent state."""

from .accounts import AccountRepository
from .models import AccountRecord, AccountUpdate, NewAccount, PermissionStatus

__all__ = ["AccountRecord", "AccountRepository", "AccountUpdate", "NewAccount", "PermissionStatus"]
