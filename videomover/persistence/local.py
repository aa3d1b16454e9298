"""Local directory implementation of the destination container."""
from __future__ import annotations

import errno
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from ..core.errors import CreateError, RenameError


@dataclass(frozen=True, slots=True)
class LocalChild:
    """Handle to a file inside a LocalDirectoryContainer."""
    path: Path

    @property
    def name(self) -> str:
        return self.path.name


class LocalDirectoryContainer:
    """Destination container over one directory on the local filesystem.

    Children are plain files directly inside the directory. Neither create
    nor rename ever replaces an existing entry.
    """

    def __init__(self, directory: Path, create: bool = True):
        """Initialize the container.

        Args:
            directory: Target directory.
            create: Create the directory if it does not exist.
        """
        self._directory = directory
        if create:
            directory.mkdir(parents=True, exist_ok=True)
        elif not directory.is_dir():
            raise NotADirectoryError(f"Destination is not a directory: {directory}")

    @property
    def directory(self) -> Path:
        return self._directory

    def _child_path(self, name: str) -> Path:
        if not name or name in {".", ".."} or "/" in name or os.sep in name:
            raise ValueError(f"Invalid child name: {name!r}")
        return self._directory / name

    def create_child(self, name: str, content_type: str) -> LocalChild:
        """Create an empty file. content_type is only a hint and unused here."""
        try:
            path = self._child_path(name)
            # 'x' mode fails if the name already exists
            with path.open("xb"):
                pass
        except FileExistsError as e:
            raise CreateError(f"Already exists: {name}") from e
        except (OSError, ValueError) as e:
            raise CreateError(f"Cannot create {name}: {e}") from e
        return LocalChild(path)

    def find_child(self, name: str) -> Optional[LocalChild]:
        try:
            path = self._child_path(name)
        except ValueError:
            return None
        return LocalChild(path) if path.is_file() else None

    def exists(self, name: str) -> bool:
        try:
            return os.path.lexists(self._child_path(name))
        except ValueError:
            return False

    def open_writer(self, handle: LocalChild) -> BinaryIO:
        return handle.path.open("wb")

    def rename(self, handle: LocalChild, new_name: str) -> LocalChild:
        """Rename without replacing an existing entry.

        Uses link-then-unlink, which fails atomically if the target exists.
        Filesystems without hard links (FAT, exFAT) fall back to
        check-then-rename.
        """
        try:
            target = self._child_path(new_name)
        except ValueError as e:
            raise RenameError(str(e)) from e

        try:
            os.link(handle.path, target)
        except FileExistsError as e:
            raise RenameError(f"Target already exists: {new_name}") from e
        except OSError as e:
            if e.errno not in {errno.EPERM, errno.ENOTSUP, errno.EOPNOTSUPP, errno.EXDEV, errno.EMLINK}:
                raise RenameError(f"Cannot rename {handle.name}: {e}") from e
            return self._rename_without_link(handle, target)

        try:
            handle.path.unlink()
        except OSError as e:
            # Undo so the final name is not visible next to its partial
            target.unlink(missing_ok=True)
            raise RenameError(f"Cannot rename {handle.name}: {e}") from e
        return LocalChild(target)

    def _rename_without_link(self, handle: LocalChild, target: Path) -> LocalChild:
        if os.path.lexists(target):
            raise RenameError(f"Target already exists: {target.name}")
        try:
            handle.path.rename(target)
        except OSError as e:
            raise RenameError(f"Cannot rename {handle.name}: {e}") from e
        return LocalChild(target)

    def delete(self, handle: LocalChild) -> bool:
        try:
            handle.path.unlink(missing_ok=True)
            return True
        except OSError:
            return False

    def list_names(self) -> list[str]:
        return sorted(entry.name for entry in self._directory.iterdir() if entry.is_file())
