"""CloudFormation template provider."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

from account_onboarding.errors import NotFoundError


TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"
TEMPLATE_SUFFIX = ".cfn.yml"

_TEMPLATE_NAME = re.compile(r"^[a-z0-9][a-z0-9-]*$")


class CfnTemplateService:
    """Serve the packaged, versioned CloudFormation templates by name."""

    def __init__(self, template_dir: Path | None = None) -> None:
        self._template_dir = template_dir or TEMPLATE_DIR
        self._cache: dict[str, str] = {}

    async def get_template(self, name: str) -> str:
        if name in self._cache:
            return self._cache[name]
        path = self._path_for(name)
        body = await asyncio.to_thread(path.read_text, encoding="utf-8")
        self._cache[name] = body
        return body

    def _path_for(self, name: str) -> Path:
        path = self._template_dir / f"{name}{TEMPLATE_SUFFIX}"
        if not _TEMPLATE_NAME.match(name) or not path.is_file():
            raise NotFoundError(f"template '{name}' not found", user_message=f"Template '{name}' not found")
        return path


__all__ = ["CfnTemplateService", "TEMPLATE_DIR"]
