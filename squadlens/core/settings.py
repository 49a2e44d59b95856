"""Runtime configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_ISSUE_TTL_SECONDS = 300
DEFAULT_WATCH_DEBOUNCE_MS = 300
DEFAULT_GITHUB_API_URL = "https://api.github.com"


@dataclass
class SquadSettings:
    """Settings shared by the provider, issue source and server."""

    root: Path | None = None
    squad_folder: str | None = None
    issue_ttl_seconds: float = DEFAULT_ISSUE_TTL_SECONDS
    github_token: str | None = None
    github_api_url: str = DEFAULT_GITHUB_API_URL
    watch_debounce_ms: int = DEFAULT_WATCH_DEBOUNCE_MS

    def to_dict(self) -> dict:
        return {
            "root": str(self.root) if self.root else None,
            "squad_folder": self.squad_folder,
            "issue_ttl_seconds": self.issue_ttl_seconds,
            "github_api_url": self.github_api_url,
            "watch_debounce_ms": self.watch_debounce_ms,
            "github_token_set": bool(self.github_token),
        }

    @classmethod
    def from_dict(cls, data: dict) -> SquadSettings:
        def _num(name: str, default: float) -> float:
            value = data.get(name)
            if value in (None, ""):
                return default
            try:
                parsed = float(value)
            except (TypeError, ValueError):
                return default
            return parsed if parsed > 0 else default

        root = data.get("root")
        return cls(
            root=Path(root).expanduser() if root else None,
            squad_folder=data.get("squad_folder") or None,
            issue_ttl_seconds=_num("issue_ttl_seconds", DEFAULT_ISSUE_TTL_SECONDS),
            github_token=data.get("github_token") or None,
            github_api_url=(data.get("github_api_url") or DEFAULT_GITHUB_API_URL).rstrip("/"),
            watch_debounce_ms=int(_num("watch_debounce_ms", DEFAULT_WATCH_DEBOUNCE_MS)),
        )

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> SquadSettings:
        """Build settings from ``SQUADLENS_*`` variables.

        ``GITHUB_TOKEN`` is used when ``SQUADLENS_GITHUB_TOKEN`` is unset.
        Unparseable numbers fall back to their defaults.
        """
        env = os.environ if environ is None else environ
        return cls.from_dict({
            "root": env.get("SQUADLENS_ROOT"),
            "squad_folder": env.get("SQUADLENS_SQUAD_FOLDER"),
            "issue_ttl_seconds": env.get("SQUADLENS_ISSUE_TTL_SECONDS"),
            "github_token": env.get("SQUADLENS_GITHUB_TOKEN") or env.get("GITHUB_TOKEN"),
            "github_api_url": env.get("SQUADLENS_GITHUB_API_URL"),
            "watch_debounce_ms": env.get("SQUADLENS_WATCH_DEBOUNCE_MS"),
        })
