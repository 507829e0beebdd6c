"""
Locally persisted state.

Two small JSON documents live under the state directory:
- ``session.json``: the signed-in user's profile (never the password) and
  the auth tokens that reopen the remote session
- ``preferences.json``: durable UI preferences such as the language
"""

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from mzfinance.audit import get_logger
from mzfinance.config import get_settings
from mzfinance.models.user import User


logger = get_logger(__name__)

SESSION_FILE = "session.json"
PREFERENCES_FILE = "preferences.json"
LANGUAGES = ("pt", "en")


class SessionMarker(BaseModel):
    """What a restart needs to resume a session."""

    user: User
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None

    @property
    def has_tokens(self) -> bool:
        return bool(self.access_token and self.refresh_token)


class LocalState:
    """File-backed session marker and preferences."""

    def __init__(self, state_dir: Optional[Path] = None, default_language: Optional[str] = None):
        app_settings = get_settings().app
        self.state_dir = Path(state_dir) if state_dir is not None else app_settings.state_dir
        self._default_language = default_language or app_settings.default_language

    @property
    def session_path(self) -> Path:
        return self.state_dir / SESSION_FILE

    @property
    def preferences_path(self) -> Path:
        return self.state_dir / PREFERENCES_FILE

    def _write(self, path: Path, data: dict[str, Any]) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")

    def _read(self, path: Path) -> Optional[dict[str, Any]]:
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("local_state_unreadable", path=str(path), error=str(e))
            return None
        if not isinstance(data, dict):
            logger.warning("local_state_unreadable", path=str(path), error="not an object")
            return None
        return data

    # Session marker

    def save_session(
        self,
        user: User,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
    ) -> bool:
        """
        Persist the marker.

        Returns:
            False when the state directory is not writable (logged).
        """
        marker = SessionMarker(user=user, access_token=access_token, refresh_token=refresh_token)
        try:
            self._write(self.session_path, marker.model_dump(mode="json"))
        except OSError as e:
            logger.warning("session_marker_unwritable", path=str(self.session_path), error=str(e))
            return False
        return True

    def load_session(self) -> Optional[SessionMarker]:
        """The persisted marker, or None when absent or corrupt."""
        data = self._read(self.session_path)
        if data is None:
            return None
        try:
            return SessionMarker.model_validate(data)
        except ValidationError as e:
            logger.warning("session_marker_invalid", error=str(e))
            return None

    def clear_session(self) -> bool:
        try:
            self.session_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("session_marker_unwritable", path=str(self.session_path), error=str(e))
            return False
        return True

    # Preferences

    @property
    def language(self) -> str:
        data = self._read(self.preferences_path) or {}
        language = data.get("language")
        return language if language in LANGUAGES else self._default_language

    @language.setter
    def language(self, value: str) -> None:
        if value not in LANGUAGES:
            raise ValueError(f"Unsupported language: {value}")
        data = self._read(self.preferences_path) or {}
        data["language"] = value
        self._write(self.preferences_path, data)
