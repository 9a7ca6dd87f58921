"""
Practice-test save/resume.

A learner can leave a test mid-section and pick it up later at the same
section, clock and answers. Each attempt is one JSON document under
~/.lmsplayer/sessions/ (see Settings.session_dir), named after its session id.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from pydantic import BaseModel, Field, ValidationError


class TestSessionState(BaseModel):
    """Resumable position of one practice-test attempt."""

    __test__ = False

    session_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:8])
    test_id: str
    started_at: datetime = Field(default_factory=datetime.now)
    last_saved_at: datetime = Field(default_factory=datetime.now)
    section_index: int = 0
    remaining_seconds: int = 0
    elapsed_seconds: int = 0
    answers: dict[str, Any] = Field(default_factory=dict)
    # Stale after this long without a save
    expiry_hours: int = 24

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now()) - self.last_saved_at > timedelta(hours=self.expiry_hours)


class SessionStore:
    """Directory of saved attempts, one {session_id}.json per attempt."""

    def __init__(self, session_dir: Path):
        self.session_dir = Path(session_dir)
        self.session_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, session_id: str) -> Path:
        return self.session_dir / f"{session_id}.json"

    def _read(self, path: Path) -> TestSessionState | None:
        """Parsed state, or None when the file cannot be read or parsed."""
        try:
            return TestSessionState.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            logger.warning(f"Unreadable session file {path.name}: {type(e).__name__}")
            return None

    def _scan(self) -> list[tuple[Path, TestSessionState | None]]:
        """Every session file with its parsed state, None for unreadable files."""
        return [(path, self._read(path)) for path in sorted(self.session_dir.glob("*.json"))]

    def save(self, state: TestSessionState) -> Path:
        state.last_saved_at = datetime.now()
        path = self._path(state.session_id)
        path.write_text(state.model_dump_json(indent=2), encoding="utf-8")
        logger.debug(f"Saved session {state.session_id} for test {state.test_id}")
        return path

    def load(self, session_id: str) -> Optional[TestSessionState]:
        path = self._path(session_id)
        if not path.exists():
            return None
        return self._read(path)

    def list_sessions(self) -> list[TestSessionState]:
        """Live sessions, most recently saved first."""
        live = [state for _, state in self._scan() if state is not None and not state.is_expired()]
        return sorted(live, key=lambda state: state.last_saved_at, reverse=True)

    def get_latest(self, test_id: str | None = None) -> Optional[TestSessionState]:
        """Most recently saved live session, optionally only for test_id."""
        for state in self.list_sessions():
            if test_id is None or state.test_id == test_id:
                return state
        return None

    def delete(self, session_id: str) -> bool:
        path = self._path(session_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    def cleanup_expired(self) -> int:
        """Delete expired and unreadable session files. Returns how many were removed."""
        stale = [path for path, state in self._scan() if state is None or state.is_expired()]
        for path in stale:
            path.unlink()
        if stale:
            logger.info(f"Removed {len(stale)} stale session files")
        return len(stale)


def create_session_state(test_id: str, expiry_hours: int = 24) -> TestSessionState:
    """Fresh state for a new attempt at test_id."""
    return TestSessionState(test_id=test_id, expiry_hours=expiry_hours)
