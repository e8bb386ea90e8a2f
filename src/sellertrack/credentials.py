"""Persisted console credentials.

The console keeps the bearer token and the logged-in user record after
login. Here that is a small JSON file::

    {"token": "<jwt>", "user": {...}}
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from sellertrack.exceptions import TrackingConfigError

_logger = logging.getLogger(__name__)


class CredentialStore:
    """Read/write the persisted bearer token."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise TrackingConfigError(f"Cannot read credentials file {self._path}: {exc}") from exc
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            _logger.warning("Ignoring corrupt credentials file %s", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def load_token(self) -> str | None:
        token = self._read().get("token")
        if isinstance(token, str) and token.strip():
            return token.strip()
        return None

    def load_user(self) -> dict[str, Any] | None:
        user = self._read().get("user")
        return user if isinstance(user, dict) else None

    def save(self, token: str, user: dict[str, Any] | None = None) -> None:
        if not token or not token.strip():
            raise ValueError("token must be non-empty")
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload: dict[str, Any] = {"token": token.strip()}
        if user is not None:
            payload["user"] = user
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(payload), encoding="utf-8")
        os.chmod(tmp, 0o600)
        tmp.replace(self._path)

    def clear(self) -> None:
        """Forget the stored token and user (after an HTTP 401)."""
        try:
            self._path.unlink()
        except FileNotFoundError:
            return
        _logger.info("Cleared persisted credentials at %s", self._path)
