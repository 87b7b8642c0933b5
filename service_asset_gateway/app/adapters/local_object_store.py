"""
Filesystem-backed object store.

Objects live under ``<base>/objects/<key>`` and their content types under
``<base>/meta/<key>.json``. Every file is written to a temporary sibling and
moved into place, so readers never observe a partially written object.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from shared.errors import StoreError, ValidationError
from shared.logging import get_logger

from ..domain.models import Blob
from .object_store import ObjectStore


class LocalObjectStore(ObjectStore):
    def __init__(self, base_dir: str) -> None:
        self.base_dir = Path(base_dir).resolve()
        self.objects_dir = self.base_dir / "objects"
        self.meta_dir = self.base_dir / "meta"
        self.objects_dir.mkdir(parents=True, exist_ok=True)
        self.meta_dir.mkdir(parents=True, exist_ok=True)
        self.logger = get_logger("asset-gateway.local_object_store")

    def _resolve(self, root: Path, relative: str) -> Path:
        path = (root / relative).resolve()
        if root not in path.parents:
            raise ValidationError("Object key escapes the store root", {"key": relative})
        return path

    def _object_path(self, key: str) -> Path:
        return self._resolve(self.objects_dir, key)

    def _meta_path(self, key: str) -> Path:
        return self._resolve(self.meta_dir, f"{key}.json")

    @staticmethod
    def _atomic_write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _get(self, key: str) -> Optional[Blob]:
        object_path = self._object_path(key)
        try:
            data = object_path.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return None

        content_type = None
        try:
            content_type = json.loads(self._meta_path(key).read_text("utf-8")).get("content_type")
        except FileNotFoundError:
            pass
        return Blob(data=data, content_type=content_type)

    def _put(self, key: str, blob: Blob) -> None:
        meta = json.dumps({"content_type": blob.content_type}).encode("utf-8")
        self._atomic_write(self._meta_path(key), meta)
        self._atomic_write(self._object_path(key), blob.data)

    def _delete(self, key: str) -> None:
        self._object_path(key).unlink(missing_ok=True)
        self._meta_path(key).unlink(missing_ok=True)

    async def get(self, key: str) -> Optional[Blob]:
        try:
            return await asyncio.to_thread(self._get, key)
        except (OSError, ValueError) as exc:
            raise StoreError(self.name, "read failed", {"key": key, "error": str(exc)}) from exc

    async def put(self, key: str, blob: Blob) -> None:
        try:
            await asyncio.to_thread(self._put, key, blob)
        except OSError as exc:
            raise StoreError(self.name, "write failed", {"key": key, "error": str(exc)}) from exc

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._delete, key)
        except OSError as exc:
            raise StoreError(self.name, "delete failed", {"key": key, "error": str(exc)}) from exc

    async def ping(self) -> bool:
        return await asyncio.to_thread(os.access, self.objects_dir, os.W_OK)
