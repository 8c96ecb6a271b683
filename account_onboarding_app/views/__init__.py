from __future__ import annotations

from .api import account_detail, accounts, batch_check, check_account, finish_onboarding, onboard_account
from .health import health

__all__ = [
    "account_detail",
    "accounts",
    "batch_check",
    "check_account",
    "finish_onboarding",
    "health",
    "onboard_account",
]
