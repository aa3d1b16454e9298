"""Filesystem-backed media index for a mounted media root."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, Optional

from ..core.models import SourceItem


logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({
    ".jpg", ".jpeg", ".png", ".webp", ".heic", ".heif",
    ".tif", ".tiff", ".bmp", ".gif", ".dng"
})

VIDEO_EXTENSIONS = frozenset({
    ".mp4", ".mov", ".avi", ".mkv", ".webm", ".m4v",
    ".3gp", ".wmv", ".flv", ".mts", ".m2ts"
})


def is_video(path: Path) -> bool:
    return path.suffix.lower() in VIDEO_EXTENSIONS


def is_image(path: Path) -> bool:
    return path.suffix.lower() in IMAGE_EXTENSIONS


class DirectoryMediaIndex:
    """Indexes media files below a root directory.

    Plays the role of the platform media index: group paths are relative
    parent directories with a trailing slash ('DCIM/Camera/'), identities
    are relative POSIX paths and dates come from file modification times.
    Also implements SourceReader for the items it yields.
    """

    def __init__(
        self,
        root: Path,
        include_images: bool = False,
        follow_symlinks: bool = False,
    ):
        """Initialize the index.

        Args:
            root: Media root (e.g. a mounted phone's internal storage).
            include_images: Index images as well as videos.
            follow_symlinks: Whether to follow symbolic links.
        """
        self._root = root
        self._include_images = include_images
        self._follow_symlinks = follow_symlinks

    @property
    def root(self) -> Path:
        return self._root

    def query(self) -> Iterator[SourceItem]:
        """Yield a SourceItem for every media file under the root."""
        yield from self._scan_directory(self._root)

    def _scan_directory(self, directory: Path) -> Iterator[SourceItem]:
        try:
            entries = sorted(directory.iterdir())
        except PermissionError:
            logger.debug("Skipping unreadable directory %s", directory)
            return

        for entry in entries:
            if entry.is_symlink() and not self._follow_symlinks:
                continue

            if entry.is_file():
                if is_video(entry) or (self._include_images and is_image(entry)):
                    item = self._to_item(entry)
                    if item is not None:
                        yield item
            elif entry.is_dir():
                yield from self._scan_directory(entry)

    def _to_item(self, path: Path) -> Optional[SourceItem]:
        try:
            stat = path.stat()
        except OSError as e:
            logger.debug("Cannot stat %s: %s", path, e)
            return None

        relative = path.relative_to(self._root)
        parent = relative.parent.as_posix()
        return SourceItem(
            identity=relative.as_posix(),
            display_name=path.name,
            size=stat.st_size,
            group_path="" if parent == "." else f"{parent}/",
            date_taken=datetime.fromtimestamp(stat.st_mtime),
        )

    def path_of(self, identity: str) -> Path:
        """Absolute path of an indexed identity; rejects paths leaving the root."""
        path = (self._root / identity).resolve()
        if not path.is_relative_to(self._root.resolve()):
            raise ValueError(f"Identity outside media root: {identity}")
        return path

    def open_source(self, item: SourceItem) -> BinaryIO:
        """Open an item for binary reading."""
        return self.path_of(item.identity).open("rb")

    def delete_items(self, identities: Iterable[str]) -> int:
        """Delete originals after a verified transfer.

        Returns:
            Number of files deleted.
        """
        deleted = 0
        for identity in identities:
            try:
                self.path_of(identity).unlink()
                deleted += 1
            except (OSError, ValueError) as e:
                logger.warning("Could not delete original %s: %s", identity, e)
        return deleted
