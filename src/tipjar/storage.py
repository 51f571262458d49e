"""Tip and folder stores.

``TipStore`` and ``FolderStore`` are the contracts the pipeline depends on.
The JSON implementations keep one file per identity and collection under the
data directory::

    <data_dir>/<identity>/tips.json
    <data_dir>/<identity>/folders.json

Each store instance owns its lock; the lock is held only for a single
read-modify-write of one file.
"""

import hashlib
import json
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

from .exceptions import StorageUnavailable, ValidationError
from .models import DEFAULT_FOLDER, Folder, Tip, utc_now
from .utils import sanitize_filename

logger = logging.getLogger(__name__)

# Fields that may never change after creation.
IMMUTABLE_FIELDS = frozenset({"id", "created_at"})


class TipStore(ABC):
    """CRUD over persisted tips, scoped by identity."""

    @abstractmethod
    def list(self, identity: str) -> list[Tip]:
        """Return all tips for the identity, oldest first."""

    @abstractmethod
    def create(self, identity: str, tip: Tip) -> Tip:
        """Persist a new tip and return it with its assigned id."""

    @abstractmethod
    def update(self, identity: str, tip_id: str, fields: dict[str, Any]) -> Optional[Tip]:
        """Apply a partial update; return the updated tip or None if not found."""

    @abstractmethod
    def delete(self, identity: str, tip_id: str) -> bool:
        """Delete a tip; return False if it did not exist."""

    def get(self, identity: str, tip_id: str) -> Optional[Tip]:
        for tip in self.list(identity):
            if tip.id == tip_id:
                return tip
        return None


class FolderStore(ABC):
    """CRUD over user-defined folders, scoped by identity."""

    @abstractmethod
    def list(self, identity: str) -> list[Folder]:
        """Return all folders for the identity."""

    @abstractmethod
    def create(self, identity: str, folder: Folder) -> Folder:
        """Persist a new folder and return it with its assigned id."""

    @abstractmethod
    def update(self, identity: str, folder_id: str, fields: dict[str, Any]) -> Optional[Folder]:
        """Apply a partial update; return the updated folder or None if not found."""

    @abstractmethod
    def delete(self, identity: str, folder_id: str) -> bool:
        """Delete a folder record; return False if it did not exist."""

    def get(self, identity: str, folder_id: str) -> Optional[Folder]:
        for folder in self.list(identity):
            if folder.id == folder_id:
                return folder
        return None


def identity_dirname(identity: str) -> str:
    """Filesystem-safe directory name for an identity.

    Identities that need sanitising get a hash suffix so two different
    identities never share a directory.
    """
    if not identity or not identity.strip():
        raise ValidationError("Identity is required")
    safe = sanitize_filename(identity)
    if safe != identity:
        digest = hashlib.sha1(identity.encode("utf-8")).hexdigest()[:10]
        safe = f"{safe}-{digest}"
    return safe


def new_id() -> str:
    return uuid.uuid4().hex


class _JsonCollection:
    """One JSON array file per identity."""

    def __init__(self, data_dir: Path, filename: str, record_cls):
        self._data_dir = Path(data_dir)
        self._filename = filename
        self._record_cls = record_cls
        self._lock = threading.Lock()

    def _path(self, identity: str) -> Path:
        return self._data_dir / identity_dirname(identity) / self._filename

    def _read(self, identity: str) -> list:
        path = self._path(identity)
        if not path.exists():
            return []
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageUnavailable(f"Failed to read {path}: {e}") from e
        if not isinstance(raw, list):
            raise StorageUnavailable(f"Corrupt store file {path}: expected a list")
        try:
            return [self._record_cls.from_dict(item) for item in raw if isinstance(item, dict)]
        except TypeError as e:
            raise StorageUnavailable(f"Corrupt record in {path}: {e}") from e

    def _write(self, identity: str, records: list) -> None:
        path = self._path(identity)
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(
                json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            tmp.replace(path)
        except OSError as e:
            raise StorageUnavailable(f"Failed to write {path}: {e}") from e

    def list(self, identity: str) -> list:
        with self._lock:
            return self._read(identity)

    def append(self, identity: str, record, check=None) -> None:
        with self._lock:
            records = self._read(identity)
            if check is not None:
                check(record, records)
            records.append(record)
            self._write(identity, records)

    def modify(self, identity: str, record_id: str, changes: dict[str, Any], check=None):
        with self._lock:
            records = self._read(identity)
            for index, record in enumerate(records):
                if record.id == record_id:
                    updated = replace(record, **changes)
                    if check is not None:
                        check(updated, records)
                    records[index] = updated
                    self._write(identity, records)
                    return updated
            return None

    def remove(self, identity: str, record_id: str) -> bool:
        with self._lock:
            records = self._read(identity)
            kept = [r for r in records if r.id != record_id]
            if len(kept) == len(records):
                return False
            self._write(identity, kept)
            return True


def _changes_for(record_cls, fields: dict[str, Any]) -> dict[str, Any]:
    """Map camelCase or snake_case keys to attributes, dropping unknown and immutable ones."""
    changes = {}
    for key, value in fields.items():
        name = record_cls.field_for(key)
        if name is None or name in IMMUTABLE_FIELDS:
            continue
        changes[name] = value
    return changes


def _check_unique_name(folder: Folder, records: list[Folder]) -> None:
    if any(f.name == folder.name and f.id != folder.id for f in records):
        raise ValidationError(f"Folder {folder.name!r} already exists")


class JsonTipStore(TipStore):
    """File-backed tip store."""

    def __init__(self, data_dir: Path):
        self._tips = _JsonCollection(data_dir, "tips.json", Tip)

    def list(self, identity: str) -> list[Tip]:
        return self._tips.list(identity)

    def create(self, identity: str, tip: Tip) -> Tip:
        saved = replace(
            tip,
            id=new_id(),
            folder=(tip.folder or "").strip() or DEFAULT_FOLDER,
        )
        self._tips.append(identity, saved)
        logger.debug("Stored tip %s for %s in folder %r", saved.id, identity, saved.folder)
        return saved

    def update(self, identity: str, tip_id: str, fields: dict[str, Any]) -> Optional[Tip]:
        changes = _changes_for(Tip, fields)
        if "folder" in changes:
            changes["folder"] = (changes["folder"] or "").strip() or DEFAULT_FOLDER
        return self._tips.modify(identity, tip_id, changes)

    def delete(self, identity: str, tip_id: str) -> bool:
        return self._tips.remove(identity, tip_id)


class JsonFolderStore(FolderStore):
    """File-backed folder store; names are unique per identity."""

    def __init__(self, data_dir: Path):
        self._folders = _JsonCollection(data_dir, "folders.json", Folder)

    def list(self, identity: str) -> list[Folder]:
        return self._folders.list(identity)

    def create(self, identity: str, folder: Folder) -> Folder:
        name = (folder.name or "").strip()
        if not name:
            raise ValidationError("Folder name is required")
        now = utc_now()
        saved = replace(folder, id=new_id(), name=name, created_at=now, updated_at=now)
        self._folders.append(identity, saved, check=_check_unique_name)
        return saved

    def update(self, identity: str, folder_id: str, fields: dict[str, Any]) -> Optional[Folder]:
        changes = _changes_for(Folder, fields)
        if "name" in changes:
            changes["name"] = (changes["name"] or "").strip()
            if not changes["name"]:
                raise ValidationError("Folder name is required")
        changes["updated_at"] = utc_now()
        return self._folders.modify(identity, folder_id, changes, check=_check_unique_name)

    def delete(self, identity: str, folder_id: str) -> bool:
        return self._folders.remove(identity, folder_id)
