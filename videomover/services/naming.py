"""Collision-safe naming of destination children."""
from __future__ import annotations

import re
from typing import Any, Collection

from ..core.models import PARTIAL_SUFFIX

# Path separators, control characters and characters Windows filesystems reject
UNSAFE_CHARS = re.compile(r'[\x00-\x1f\x7f/\\<>:"|?*]')
FALLBACK_NAME = "unnamed"


def sanitize_name(name: str) -> str:
    """Make an untrusted display name safe to use as a single child name."""
    name = UNSAFE_CHARS.sub("_", name).strip()
    if name in {"", ".", ".."}:
        return FALLBACK_NAME
    # A completed name must never look like an in-progress temp
    if name.lower().endswith(PARTIAL_SUFFIX):
        name = name[:-len(PARTIAL_SUFFIX)] + "_" + name[-len(PARTIAL_SUFFIX) + 1:]
    return name


def split_display_name(name: str) -> tuple[str, str]:
    """Split a display name into (base, extension).

    The extension keeps its leading dot. A dot in first or last position
    does not start an extension: '.hidden' and 'name.' have none.
    """
    dot = name.rfind(".")
    if 0 < dot < len(name) - 1:
        return name[:dot], name[dot:]
    return name, ""


def candidate_name(base: str, extension: str, counter: int) -> str:
    """Build 'base.ext', or 'base (N).ext' for counter N > 0."""
    if counter == 0:
        return f"{base}{extension}"
    return f"{base} ({counter}){extension}"


class UniqueNameResolver:
    """Finds a child name that is free in a destination container.

    Probes base+ext, then 'base (1)ext', 'base (2)ext', ... with no upper
    bound. The probe is not atomic with the later create; callers running
    concurrently must serialize resolve-then-create themselves.
    """

    def resolve(
        self,
        container: Any,
        base: str,
        extension: str = "",
        reserved: Collection[str] = (),
    ) -> str:
        """Return a name not present in the container nor in reserved.

        Args:
            container: DestinationContainer to probe.
            base: Name without extension.
            extension: Extension including its leading dot, or "".
            reserved: Names already claimed by in-flight transfers.
        """
        counter = 0
        while True:
            candidate = candidate_name(base, extension, counter)
            if candidate not in reserved and not container.exists(candidate):
                return candidate
            counter += 1
