"""Textual comparison of expected vs deployed permission templates.

Both sides are normalised by dropping ``#`` comments and every whitespace
character, then compared for exact equality. No YAML parsing happens, so a
template that is semantically equal but reformatted (key order, quoting, flow
vs block style) still reports ``NEEDSUPDATE``.
"""

from __future__ import annotations

import re

from account_onboarding.repos.models import PermissionStatus


_COMMENT = re.compile(r"#[^\r\n]*")
_WHITESPACE = re.compile(r"\s+")


def normalize_template(text: str) -> str:
    return _WHITESPACE.sub("", _COMMENT.sub("", text))


def compare_templates(expected: str, actual: str) -> PermissionStatus:
    if normalize_template(expected) == normalize_template(actual):
        return PermissionStatus.CURRENT
    return PermissionStatus.NEEDSUPDATE


__all__ = ["compare_templates", "normalize_template"]
