"""
Partial Resolver - Static expansion of partial('view') directives.

Rather than including partials at render time, directives such as

    {{ partial('header.html') }}
    {{- partial("nav/menu.html") -}}

are replaced by the referenced file's contents before compilation, so a
partial becomes part of its parent's compiled template exactly once.
"""

import logging
import posixpath
import re
from pathlib import Path
from typing import Optional, Pattern, Tuple, Union

from .faults import PartialUnreadableFault


logger = logging.getLogger("viewrender.partials")


def build_partial_pattern(variable_start: str = "{{", variable_end: str = "}}") -> Pattern[str]:
    """
    Build the directive regex for the given output delimiters.

    Only single- or double-quoted literal arguments match; any other
    ``partial(...)`` call is left for the template engine.
    """
    return re.compile(
        re.escape(variable_start)
        + r"[-+]?\s*partial\(\s*(?P<quote>['\"])(?P<view>[^'\"\n]*)(?P=quote)\s*\)\s*[-+]?"
        + re.escape(variable_end)
    )


def normalize_view(view: str) -> str:
    """Canonical form of a view identifier, used for cycle detection."""
    return posixpath.normpath(view.replace("\\", "/")).lstrip("/")


class PartialResolver:
    """
    Expands partial directives in template source.

    A directive is replaced by the empty string when its view name is
    empty, or when it names a view that is already being expanded
    (the including view itself or any of its ancestors). Unreadable
    partials are logged and replaced by the empty string.

    Args:
        root: Directory view identifiers are resolved against
        encoding: Encoding used to read partial files
        variable_start_string: Opening output delimiter
        variable_end_string: Closing output delimiter
    """

    def __init__(
        self,
        root: Union[str, Path],
        *,
        encoding: str = "utf-8",
        variable_start_string: str = "{{",
        variable_end_string: str = "}}",
    ):
        self.root = Path(root)
        self.encoding = encoding
        self.pattern = build_partial_pattern(variable_start_string, variable_end_string)

    def resolve(self, text: str, current: Optional[str] = None) -> str:
        """
        Expand every resolvable partial directive in ``text``.

        Args:
            text: Raw template source
            current: Identifier of the view ``text`` was read from

        Returns:
            Template source with partials inlined
        """
        chain = (normalize_view(current),) if current else ()
        return self._expand(text, chain)

    def _expand(self, text: str, chain: Tuple[str, ...]) -> str:
        def substitute(match: "re.Match[str]") -> str:
            view = match.group("view").strip()
            if not view:
                return ""

            key = normalize_view(view)
            if key in chain:
                logger.debug("Skipping recursive partial %s (chain: %s)", view, " > ".join(chain))
                return ""

            path = self.root / view
            # ValueError: undecodable bytes or an embedded NUL
            try:
                source = path.read_text(encoding=self.encoding)
            except (OSError, ValueError) as exc:
                fault = PartialUnreadableFault(view, str(path), str(exc))
                logger.warning("%s", fault, exc_info=exc)
                return ""

            return self._expand(source, chain + (key,))

        return self.pattern.sub(substitute, text)
