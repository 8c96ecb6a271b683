"""Tests for account record helpers and permission status decoding."""

import pytest

from account_onboarding.repos import PermissionStatus
from tests.conftest import make_account


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("CURRENT", PermissionStatus.CURRENT),
        ("PENDING", PermissionStatus.PENDING),
        ("ERROR", PermissionStatus.ERRORED),
        ("ERRORED", PermissionStatus.ERRORED),
        ("SOMETHING_ELSE", PermissionStatus.UNKNOWN),
        ("", PermissionStatus.UNKNOWN),
        (None, PermissionStatus.UNKNOWN),
    ],
)
def test_parse_status(raw, expected):
    assert PermissionStatus.parse(raw) is expected


def test_every_status_has_display_detail():
    for status in PermissionStatus:
        assert status.detail.display
    assert PermissionStatus.PENDING.detail.spinner is True
    assert PermissionStatus.UNKNOWN.detail.color == "grey"


def test_structurally_onboarded_requires_all_permission_fields():
    account = make_account()
    assert account.is_onboarded
    assert account.missing_onboarding_fields == []

    partial = make_account(vpc_id=None, cfn_stack_id=None)
    assert not partial.is_onboarded
    assert partial.missing_onboarding_fields == ["vpc_id", "cfn_stack_id"]


def test_missing_stack_id_alone_does_not_affect_onboarded_flag():
    account = make_account(cfn_stack_id=None)
    assert account.is_onboarded
    assert account.missing_onboarding_fields == ["cfn_stack_id"]
