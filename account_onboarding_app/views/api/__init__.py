from __future__ import annotations

from .accounts import account_detail, accounts
from .permissions import batch_check, check_account, finish_onboarding, onboard_account

__all__ = [
    "account_detail",
    "accounts",
    "batch_check",
    "check_account",
    "finish_onboarding",
    "onboard_account",
]
