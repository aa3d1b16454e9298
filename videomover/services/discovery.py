"""Source discovery - finds the camera folder and enumerates its items."""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from fnmatch import fnmatch
from typing import Iterable, Optional

from ..core.models import SourceItem
from ..core.protocols import MediaIndex


logger = logging.getLogger(__name__)

# Group paths containing this marker are camera-root candidates
CAMERA_ROOT_MARKER = "DCIM"

# Typical camera folders when no source path is configured
CAMERA_GROUP_PATTERNS = (
    "dcim/*camera*",
    "movies/*camera*",
)
CAMERA_BUCKET = "camera"

# Messenger, download and app-private cache folders are never camera footage
EXCLUDED_MARKERS = frozenset({
    "WhatsApp",
    "Telegram",
    "Download",
    "/Android/media/",
})

DETECTION_SAMPLE_SIZE = 50


def is_excluded(group_path: str) -> bool:
    """Check if a group path lies in a denylisted folder."""
    # Anchor with slashes so '/Android/media/' matches relative paths too
    anchored = f"/{group_path.strip('/')}/"
    return any(marker in anchored for marker in EXCLUDED_MARKERS)


def is_camera_group(group_path: str) -> bool:
    """Check if a group path looks like a camera folder."""
    lowered = group_path.strip("/").lower()
    if any(fnmatch(lowered, pattern) for pattern in CAMERA_GROUP_PATTERNS):
        return True
    parts = [p for p in lowered.split("/") if p]
    return bool(parts) and parts[-1] == CAMERA_BUCKET


def newest_first(items: Iterable[SourceItem]) -> list[SourceItem]:
    """Sort reverse-chronologically; undated items go last, ties keep index order."""
    return sorted(
        items,
        key=lambda item: (item.date_taken is not None, item.date_taken or datetime.min),
        reverse=True,
    )


class SourceDiscovery:
    """Queries a media index for transferable camera items.

    Implements the SourceEnumerator protocol.
    """

    def __init__(self, index: MediaIndex, limit: Optional[int] = None):
        """Initialize discovery.

        Args:
            index: Media index to query.
            limit: Maximum number of items enumerate() returns.
        """
        self._index = index
        self._limit = limit

    def detect_likely_group(self) -> Optional[str]:
        """Guess the camera group path from the most recent items.

        Looks at the newest DETECTION_SAMPLE_SIZE items, counts group paths
        containing the camera-root marker and returns the most frequent one.
        Ties go to the group seen first (i.e. the most recent).
        """
        recent = newest_first(self._index.query())[:DETECTION_SAMPLE_SIZE]
        counts = Counter(
            item.group_path for item in recent
            if CAMERA_ROOT_MARKER in item.group_path
        )
        if not counts:
            logger.debug("No camera group among %d recent items", len(recent))
            return None

        # Counter keeps first-seen order and most_common sorts stably
        group, count = counts.most_common(1)[0]
        logger.debug("Detected camera group %s (%d of %d recent items)", group, count, len(recent))
        return group

    def enumerate(self, prefix: Optional[str] = None) -> list[SourceItem]:
        """List items to transfer, newest first.

        Args:
            prefix: Group path prefix. None selects typical camera folders.
        """
        if prefix:
            matches = (item for item in self._index.query() if item.group_path.startswith(prefix))
        else:
            matches = (item for item in self._index.query() if is_camera_group(item.group_path))

        items = newest_first(item for item in matches if not is_excluded(item.group_path))
        if self._limit is not None:
            items = items[:self._limit]
        return items
