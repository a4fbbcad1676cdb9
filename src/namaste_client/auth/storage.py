"""Durable key-value storage for credentials.

The credential store only needs three operations, so any backend that
provides `get`, `set` and `remove` on string keys and values will do:
process memory, a JSON file, an OS keychain wrapper, a browser bridge.

Example:
    ```python
    from namaste_client.auth.storage import FileStorage

    storage = FileStorage("~/.config/namaste/auth.json")
    store = CredentialStore(storage)
    ```
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStorage(Protocol):
    """Minimal storage capability used by `CredentialStore`."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage. Contents are lost when the process exits."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileStorage:
    """JSON file holding a flat `{key: value}` object.

    Writes go to a temporary file in the same directory which then replaces
    the target, so a crash mid-write never leaves a truncated file. The file
    is created with 0600 permissions.

    Reads and writes are blocking and run on the calling thread, which for
    the client means the event loop (the refresh task saves through here).
    The record is a few hundred bytes on local disk. Wrap a slower backend
    in a `KeyValueStorage` that hands writes off to a worker instead.

    Args:
        path: File path. Supports ~ expansion and $VAR substitution.
    """

    def __init__(self, path: str | Path):
        self.path = Path(os.path.expanduser(os.path.expandvars(str(path))))

    def _read_all(self) -> dict[str, str]:
        try:
            content = self.path.read_text()
        except FileNotFoundError:
            return {}

        try:
            data = json.loads(content)
        except ValueError:
            logger.warning(f"Ignoring unreadable storage file: {self.path}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring storage file with unexpected shape: {self.path}")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def get(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key not in data:
            return
        del data[key]
        self._write_all(data)
