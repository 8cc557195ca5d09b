"""
Post metadata stores backing the 'meta' attribute source.

Like WordPress post meta, a store may hold several values under one key for
a post; get() always returns a single value (the first one). exists() is true
for any stored value, including an explicitly empty one.

Two implementations:
- InMemoryMetaStore: plain dict, for tests and embedding
- FileMetaStore: one JSON file per post in a directory, easy to inspect and edit
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

from .exceptions import MetaStoreError
from .logger import get_module_logger
from .schemas import PostId

logger = get_module_logger("meta_store")


class BaseMetaStore(ABC):
    """Abstract base class for metadata stores."""

    @abstractmethod
    def exists(self, post_id: PostId, key: str) -> bool:
        """
        Check whether any value is stored under a key for a post.

        Args:
            post_id: Identifier of the post
            key: Metadata key

        Returns:
            True if a value (even an empty one) is stored
        """
        pass

    @abstractmethod
    def get(self, post_id: PostId, key: str) -> Any:
        """
        Return the single value stored under a key for a post.

        Args:
            post_id: Identifier of the post
            key: Metadata key

        Returns:
            The first stored value, or None when nothing is stored
        """
        pass


class InMemoryMetaStore(BaseMetaStore):
    """Dict-backed store: {post_id: {key: [values]}}."""

    def __init__(self, data: Optional[dict] = None):
        self._data: dict[str, dict[str, list]] = {}
        for post_id, meta in (data or {}).items():
            for key, value in meta.items():
                self.set(post_id, key, value)

    @staticmethod
    def _post_key(post_id: PostId) -> str:
        # 12 and "12" name the same post
        return str(post_id)

    def exists(self, post_id: PostId, key: str) -> bool:
        return bool(self._data.get(self._post_key(post_id), {}).get(key))

    def get(self, post_id: PostId, key: str) -> Any:
        values = self._data.get(self._post_key(post_id), {}).get(key)
        return values[0] if values else None

    def get_all(self, post_id: PostId, key: str) -> list:
        return list(self._data.get(self._post_key(post_id), {}).get(key, []))

    def add(self, post_id: PostId, key: str, value: Any) -> None:
        """Append a value, keeping any already stored under the key."""
        self._data.setdefault(self._post_key(post_id), {}).setdefault(key, []).append(value)

    def set(self, post_id: PostId, key: str, value: Any) -> None:
        """Replace every value under the key with a single one."""
        self._data.setdefault(self._post_key(post_id), {})[key] = [value]

    def delete(self, post_id: PostId, key: str) -> bool:
        meta = self._data.get(self._post_key(post_id), {})
        return meta.pop(key, None) is not None


class FileMetaStore(BaseMetaStore):
    """
    File-based metadata store.

    Stores each post's metadata as {store_dir}/{post_id}.json:
        {"post_id": ..., "updated_at": ..., "meta": {key: [values]}}
    A plain (non-list) value in a hand-edited file counts as a single value.
    """

    def __init__(self, store_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the store.

        Args:
            store_dir: Directory holding the per-post JSON files.
                       Defaults to ./post_meta/
        """
        if store_dir is None:
            store_dir = Path.cwd() / "post_meta"

        self.store_dir = Path(store_dir)
        self.store_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"Meta store initialized at: {self.store_dir}")

    def _post_file(self, post_id: PostId) -> Path:
        # Keep only alnum, dash and underscore so an id can't escape the directory
        safe_id = "".join(c if c.isalnum() or c in "-_" else "_" for c in str(post_id))
        return self.store_dir / f"{safe_id}.json"

    def _read(self, post_id: PostId) -> dict[str, list]:
        post_file = self._post_file(post_id)

        if not post_file.exists():
            logger.debug(f"No metadata file for post {post_id}")
            return {}

        try:
            data = json.loads(post_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise MetaStoreError(
                f"Failed to read metadata for post {post_id}: {e}",
                post_id=post_id,
                details={"file": str(post_file)}
            )

        meta = data.get("meta", {}) if isinstance(data, dict) else None
        if not isinstance(meta, dict):
            raise MetaStoreError(
                f"Metadata file for post {post_id} has no 'meta' object",
                post_id=post_id,
                details={"file": str(post_file)}
            )

        return {key: values if isinstance(values, list) else [values] for key, values in meta.items()}

    def _write(self, post_id: PostId, meta: dict[str, list]) -> None:
        post_file = self._post_file(post_id)
        data = {
            "post_id": post_id,
            "updated_at": datetime.now().isoformat(),
            "meta": meta,
        }
        post_file.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info(f"Saved metadata for post {post_id} -> {post_file}")

    def exists(self, post_id: PostId, key: str) -> bool:
        return bool(self._read(post_id).get(key))

    def get(self, post_id: PostId, key: str) -> Any:
        values = self._read(post_id).get(key)
        return values[0] if values else None

    def add(self, post_id: PostId, key: str, value: Any) -> None:
        meta = self._read(post_id)
        meta.setdefault(key, []).append(value)
        self._write(post_id, meta)

    def set(self, post_id: PostId, key: str, value: Any) -> None:
        meta = self._read(post_id)
        meta[key] = [value]
        self._write(post_id, meta)

    def delete(self, post_id: PostId, key: str) -> bool:
        meta = self._read(post_id)
        if key not in meta:
            return False
        del meta[key]
        self._write(post_id, meta)
        return True

    def clear(self) -> int:
        """Remove every post's metadata. Returns count of deleted files."""
        count = 0
        for post_file in self.store_dir.glob("*.json"):
            post_file.unlink()
            count += 1
        logger.info(f"Cleared {count} metadata files")
        return count
