# walletstore - local wallet credential storage
# Copyright (C) 2019-2020 The ElectrumSV Developers
#
# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

'''
The flat key-value settings storage.

Values are persisted JSON encoded under string keys in a backend that only knows about raw
strings. Older installations persisted some strings without encoding them, and these are
repaired the first time they are read.
'''

import json
import os
import stat
import threading
from typing import Any, Dict, Iterable, List, Optional

from .logs import logs


logger = logs.get_logger("local-storage")


class LocalStorageBackend:
    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, raw: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError


class MemoryBackend(LocalStorageBackend):
    def __init__(self, data: Optional[Dict[str, str]]=None) -> None:
        self._data: Dict[str, str] = {} if data is None else dict(data)
        self._lock = threading.RLock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set_item(self, key: str, raw: str) -> None:
        assert type(raw) is str, f"bad value for '{key}'"
        with self._lock:
            self._data[key] = raw

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data)


class FileBackend(MemoryBackend):
    '''
    Keeps all the entries in one JSON document, rewritten atomically on every change.
    '''

    def __init__(self, path: str) -> None:
        super().__init__()
        self._path = path
        if os.path.exists(path):
            self._data = self._read()

    def get_path(self) -> str:
        return self._path

    def _read(self) -> Dict[str, str]:
        with open(self._path, "r", encoding='utf-8') as f:
            data = json.load(f)
        if type(data) is not dict:
            raise IOError(f"Cannot read local storage file '{self._path}'")
        return { key: value for key, value in data.items()
            if isinstance(key, str) and isinstance(value, str) }

    def set_item(self, key: str, raw: str) -> None:
        with self._lock:
            super().set_item(key, raw)
            self._write()

    def remove_item(self, key: str) -> None:
        with self._lock:
            if key in self._data:
                super().remove_item(key)
                self._write()

    def clear(self) -> None:
        with self._lock:
            super().clear()
            self._write()

    def _write(self) -> None:
        raw = json.dumps(self._data, indent=4, sort_keys=True)
        temp_path = "%s.tmp.%s" % (self._path, os.getpid())
        file_descriptor = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
            stat.S_IREAD | stat.S_IWRITE)
        with os.fdopen(file_descriptor, "w", encoding='utf-8') as f:
            f.write(raw)
            f.flush()
            os.fsync(f.fileno())

        file_exists = os.path.exists(self._path)
        mode = os.stat(self._path).st_mode if file_exists else stat.S_IREAD | stat.S_IWRITE
        os.replace(temp_path, self._path)
        os.chmod(self._path, mode)


class LocalStorage:
    def __init__(self, backend: Optional[LocalStorageBackend]=None) -> None:
        self._backend = MemoryBackend() if backend is None else backend

    @classmethod
    def from_path(cls, path: str) -> 'LocalStorage':
        return cls(FileBackend(path))

    def get_item(self, key: str) -> Any:
        raw = self._backend.get_item(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            # Old versions of the wallet saved strings without JSON encoding them. We store
            # the value properly encoded so that this only happens once per entry.
            logger.debug("repairing unencoded value for '%s'", key)
            self.set_item(key, raw)
            return raw

    def set_item(self, key: str, value: Any) -> None:
        # Both key and value should be JSON serialisable.
        self._backend.set_item(key, json.dumps(value))

    def remove_item(self, key: str) -> None:
        self._backend.remove_item(key)

    def remove_items(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._backend.remove_item(key)

    def clear(self) -> None:
        self._backend.clear()

    def keys(self) -> List[str]:
        return self._backend.keys()
