"""
Template Cache - Compiled renderer cache keyed by view identifier.

Entries are never evicted and never invalidated by file changes.
Concurrent first-time compiles of one view may both store; compilation
is idempotent so the last write wins.
"""

import logging
from typing import Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .compiler import CompiledView


logger = logging.getLogger("viewrender.cache")


class TemplateCache:
    """
    In-memory compiled template cache.

    When disabled, lookups always miss and stores are dropped, so every
    render reads and compiles its view again.

    Args:
        enabled: Whether compiled views are reused
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._entries: Dict[str, "CompiledView"] = {}
        self.hits = 0
        self.misses = 0

    def get(self, view: str) -> Optional["CompiledView"]:
        """Return the compiled view for ``view`` or None."""
        if not self.enabled:
            self.misses += 1
            return None

        compiled = self._entries.get(view)
        if compiled is None:
            self.misses += 1
            logger.debug("Template cache miss: %s", view)
        else:
            self.hits += 1
        return compiled

    def set(self, view: str, compiled: "CompiledView") -> None:
        """Store a compiled view. No-op when disabled."""
        if self.enabled:
            self._entries[view] = compiled

    def clear(self) -> None:
        """Drop every entry and reset statistics."""
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def keys(self) -> List[str]:
        return sorted(self._entries)

    def stats(self) -> Dict[str, int]:
        return {
            "enabled": int(self.enabled),
            "entries": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
        }

    def __contains__(self, view: str) -> bool:
        return view in self._entries

    def __len__(self) -> int:
        return len(self._entries)
