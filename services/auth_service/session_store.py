"""
Session store - persists the single authenticated-session record on the client side.

The storage itself is injectable: Streamlit session state for the running app,
a JSON file when sessions should survive a restart, and an in-memory dict for tests.
"""

import json
from pathlib import Path
from typing import Dict, Optional, Protocol

import streamlit as st

from services.auth_service.models import SessionRecord
from utils.logging_config import get_logger


DEFAULT_SESSION_KEY = "user_session"


class KeyValueStorage(Protocol):
    """String-keyed, string-valued durable storage"""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class InMemoryStorage:
    """Process-local storage, mainly for tests"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove_item(self, key: str) -> None:
        self.data.pop(key, None)


class StreamlitStorage:
    """Storage scoped to the current Streamlit browser session"""

    def __init__(self, namespace: str = "client_storage"):
        self.namespace = namespace

    def _slots(self) -> Dict[str, str]:
        if self.namespace not in st.session_state:
            st.session_state[self.namespace] = {}
        return st.session_state[self.namespace]

    def get_item(self, key: str) -> Optional[str]:
        return self._slots().get(key)

    def set_item(self, key: str, value: str) -> None:
        self._slots()[key] = value

    def remove_item(self, key: str) -> None:
        self._slots().pop(key, None)


class FileStorage:
    """
    JSON-file storage that survives process restarts.

    The whole file is one object mapping keys to string values. A corrupt
    file is treated as empty and rewritten on the next write.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self.logger = get_logger(__name__)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self.logger.warning(f"Unreadable storage file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


class SessionStore:
    """
    Save, load and clear the authenticated session.

    Invalid or unparseable entries are purged on read and reported as "no session".
    """

    def __init__(self, storage: KeyValueStorage, key: str = DEFAULT_SESSION_KEY):
        self.storage = storage
        self.key = key
        self.logger = get_logger(__name__)

    def save(self, session: SessionRecord) -> None:
        """Serialize and write the session, replacing any previous one"""
        self.storage.set_item(self.key, json.dumps(session.to_dict()))

    def load(self) -> Optional[SessionRecord]:
        """
        Read the stored session

        Returns:
            SessionRecord if present and valid, None otherwise
        """
        raw = self.storage.get_item(self.key)
        if raw is None:
            return None

        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            self.logger.warning(f"Error parsing user session, clearing: {e}")
            self.clear()
            return None

        if not isinstance(data, dict):
            self.logger.warning("Stored session is not an object, clearing")
            self.clear()
            return None

        session = SessionRecord.from_dict(data)
        if not session.is_valid:
            self.logger.info("Session missing authentication or identifiers, clearing")
            self.clear()
            return None

        return session

    def clear(self) -> None:
        """Remove the stored session"""
        self.storage.remove_item(self.key)


def create_storage(backend: str, file_path: Optional[str] = None) -> KeyValueStorage:
    """
    Build the storage backend named in configuration

    Args:
        backend: "streamlit", "file" or "memory"
        file_path: Path of the JSON file for the file backend

    Returns:
        KeyValueStorage implementation
    """
    if backend == "file":
        return FileStorage(file_path or ".sessions/user_session.json")
    if backend == "memory":
        return InMemoryStorage()
    if backend == "streamlit":
        return StreamlitStorage()
    raise ValueError(f"Unknown session backend: {backend}")
