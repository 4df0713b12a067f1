"""Client-side token storage — a single slot holding the current bearer token."""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional, Protocol, Union

TOKEN_KEY = "authToken"


class TokenHolder(Protocol):
    def get(self) -> Optional[str]:
        ...

    def set(self, token: str) -> None:
        ...

    def clear(self) -> None:
        ...


class InMemoryTokenHolder:
    """Process-local token slot."""

    def __init__(self, token: Optional[str] = None):
        self._token = token
        self._lock = threading.Lock()

    def get(self) -> Optional[str]:
        with self._lock:
            return self._token

    def set(self, token: str) -> None:
        with self._lock:
            self._token = token

    def clear(self) -> None:
        with self._lock:
            self._token = None


class FileTokenHolder:
    """Token persisted as `{"authToken": ...}` in a JSON file.

    Writes go to a temporary file in the same directory and are swapped in with
    `os.replace`, so a reader sees either the old token or the new one, never a
    partial write.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def get(self) -> Optional[str]:
        with self._lock:
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
            except FileNotFoundError:
                return None
            except json.JSONDecodeError:
                return None
            token = data.get(TOKEN_KEY) if isinstance(data, dict) else None
            return token or None

    def set(self, token: str) -> None:
        with self._lock:
            self._write({TOKEN_KEY: token})

    def clear(self) -> None:
        with self._lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise
