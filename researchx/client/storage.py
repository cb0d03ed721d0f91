import json
import os
import threading
from typing import Optional, Protocol


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Key-value storage living as long as the process."""

    def __init__(self):
        self._data = {}

    def get_item(self, key):
        return self._data.get(key)

    def set_item(self, key, value):
        self._data[key] = str(value)

    def remove_item(self, key):
        self._data.pop(key, None)


class FileStorage:
    """
    Persistent key-value storage backed by a JSON file.

    Plays the part of the browser's local storage for command line and
    desktop clients. Writes replace the file atomically.
    """

    def __init__(self, path):
        self.path = os.path.expanduser(path)
        self._lock = threading.Lock()

    def _load(self):
        try:
            with open(self.path, encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except ValueError:
            # A corrupt file behaves like empty storage
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump(data, fh)
        os.replace(tmp_path, self.path)

    def get_item(self, key):
        with self._lock:
            return self._load().get(key)

    def set_item(self, key, value):
        with self._lock:
            data = self._load()
            data[key] = str(value)
            self._save(data)

    def remove_item(self, key):
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)
