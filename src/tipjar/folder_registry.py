"""Folder registry: the folder names known for an identity.

Known names are the union of explicitly created folders and every folder
name already used by a tip. The second group ("AI-generated" folders) is a
derived view and is never written back as folder records. The sorted name
list is injected into classification prompts so the model reuses existing
folders instead of inventing near-duplicates.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .exceptions import ValidationError
from .models import DEFAULT_FOLDER_COLOR, Folder
from .storage import FolderStore, TipStore

logger = logging.getLogger(__name__)


@dataclass
class AvailableFolders:
    """All usable folder names, split by where they come from."""

    folders: list[str] = field(default_factory=list)
    user_folders: list[str] = field(default_factory=list)
    ai_generated_folders: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "folders": self.folders,
            "userFolders": self.user_folders,
            "aiGeneratedFolders": self.ai_generated_folders,
        }


class FolderRegistry:
    """Folder names for an identity, backed by the tip and folder stores."""

    def __init__(self, tip_store: TipStore, folder_store: FolderStore):
        self._tips = tip_store
        self._folders = folder_store

    def list_folders(self, identity: str) -> list[Folder]:
        return self._folders.list(identity)

    def available(self, identity: str) -> AvailableFolders:
        """Explicit folder names, tip-derived names, and their sorted union."""
        user_names = {f.name for f in self._folders.list(identity) if f.name}
        tip_names = {
            tip.folder.strip()
            for tip in self._tips.list(identity)
            if tip.folder and tip.folder.strip()
        }
        return AvailableFolders(
            folders=sorted(user_names | tip_names),
            user_folders=sorted(user_names),
            ai_generated_folders=sorted(tip_names - user_names),
        )

    def list_names(self, identity: str) -> list[str]:
        """Sorted, deduplicated, case-sensitive folder names for prompts."""
        return self.available(identity).folders

    def create(
        self,
        identity: str,
        name: str,
        description: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Folder:
        if not name or not name.strip():
            raise ValidationError("Folder name is required")
        folder = self._folders.create(
            identity,
            Folder(
                name=name.strip(),
                description=description.strip() if description else None,
                color=color or DEFAULT_FOLDER_COLOR,
            ),
        )
        logger.info("Created folder %r for %s", folder.name, identity)
        return folder

    def update(
        self,
        identity: str,
        folder_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Optional[Folder]:
        if not folder_id:
            raise ValidationError("Folder ID is required")
        fields = {}
        if name is not None:
            fields["name"] = name
        if description is not None:
            fields["description"] = description.strip() or None
        if color:
            fields["color"] = color
        return self._folders.update(identity, folder_id, fields)

    def rename(self, identity: str, folder_id: str, new_name: str) -> Optional[Folder]:
        """Rename a folder record. Tips keep whatever name they already carry."""
        return self.update(identity, folder_id, name=new_name)

    def delete(self, identity: str, folder_id: str) -> bool:
        """Delete a folder record without touching tips that use its name."""
        if not folder_id:
            raise ValidationError("Folder ID is required")
        return self._folders.delete(identity, folder_id)

    @staticmethod
    def format_for_prompt(names: list[str]) -> str:
        """Format folder names as compact text for prompt injection."""
        if not names:
            return "No custom folders available"
        return "Available custom folders: " + ", ".join(names)
