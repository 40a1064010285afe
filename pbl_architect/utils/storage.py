"""键值存储：作业、提交与自定义知识库的持久化协作者。

只提供 ``put/get/delete`` 三个操作，值必须可 JSON 序列化，不支持事务。
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class StorageCapacityError(RuntimeError):
    """写入的值超过存储上限，原有的值保持不变。"""

    def __init__(self, key: str, size: int, limit: int) -> None:
        super().__init__(f"{key}: {size} bytes exceeds the store limit of {limit} bytes")
        self.key = key
        self.size = size
        self.limit = limit


class KeyValueStore(Protocol):
    def put(self, key: str, value: Any) -> None: ...

    def get(self, key: str) -> Optional[Any]: ...

    def delete(self, key: str) -> None: ...


def ensure_directory(path: Path) -> None:
    """确保目录存在。"""

    path.mkdir(parents=True, exist_ok=True)


def _encode(key: str, value: Any, max_value_bytes: Optional[int]) -> str:
    payload = json.dumps(value, ensure_ascii=False)
    size = len(payload.encode("utf-8"))
    if max_value_bytes is not None and size > max_value_bytes:
        logger.warning(f"Rejected write to '{key}': {size} > {max_value_bytes} bytes")
        raise StorageCapacityError(key, size, max_value_bytes)
    return payload


class InMemoryStore:
    """进程内存储，测试与单机演示使用。"""

    def __init__(self, max_value_bytes: Optional[int] = None) -> None:
        self.max_value_bytes = max_value_bytes
        self._data: Dict[str, str] = {}

    def put(self, key: str, value: Any) -> None:
        self._data[key] = _encode(key, value, self.max_value_bytes)

    def get(self, key: str) -> Optional[Any]:
        payload = self._data.get(key)
        return None if payload is None else json.loads(payload)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> Dict[str, Any]:
        return {key: json.loads(value) for key, value in self._data.items()}


class JsonFileStore:
    """每个键对应目录下一个 JSON 文件，写入时先写临时文件再原子替换。"""

    _SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")

    def __init__(self, directory: Path, max_value_bytes: Optional[int] = None) -> None:
        self.directory = Path(directory)
        self.max_value_bytes = max_value_bytes
        ensure_directory(self.directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{self._SAFE_KEY.sub('_', key)}.json"

    def put(self, key: str, value: Any) -> None:
        payload = _encode(key, value, self.max_value_bytes)
        destination = self._path(key)
        tmp = destination.with_suffix(".json.tmp")
        with tmp.open("w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp, destination)

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
