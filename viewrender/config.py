"""
Render settings - Typed, validated pipeline configuration.

Settings are merged once when a ViewEngine is constructed and are
read-only on the render path. Sources, later overriding earlier:

1. Defaults
2. Environment variables (VIEWRENDER_* prefix) and an optional .env file
3. Explicit options passed by the caller
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

from dotenv import dotenv_values

from .faults import ConfigInvalidFault


Helper = Union[Any, Callable[[Any, Any], Any]]

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _default_root() -> str:
    return str(Path.cwd() / "views")


def parse_bool(key: str, value: str) -> bool:
    """Parse an environment-style boolean."""
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigInvalidFault(key, f"expected a boolean, got {value!r}")


@dataclass(frozen=True)
class RenderSettings:
    """
    Process-wide render settings.

    Attributes:
        root: Base directory view identifiers are resolved against
        cache: Reuse compiled templates for the lifetime of the engine
        layout: Default layout view identifier, or False for no layout
        helpers: Name -> static value or callable(request, response)
        encoding: Encoding for reading views and encoding output
        autoescape: HTML-escape variable output
        sandbox: Compile with Jinja2's SandboxedEnvironment
        strict_undefined: Raise when a template references a missing name
        variable_start_string: Opening delimiter of output expressions
        variable_end_string: Closing delimiter of output expressions
        content_type: Content-Type set on finalized responses
    """

    root: str = field(default_factory=_default_root)
    cache: bool = True
    layout: Union[str, bool] = "layout.html"
    helpers: Mapping[str, Helper] = field(default_factory=dict)
    encoding: str = "utf-8"
    autoescape: bool = True
    sandbox: bool = True
    strict_undefined: bool = True
    variable_start_string: str = "{{"
    variable_end_string: str = "}}"
    content_type: str = "text/html; charset=utf-8"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise ConfigInvalidFault for values the pipeline cannot use."""
        if not isinstance(self.root, (str, os.PathLike)):
            raise ConfigInvalidFault("root", "must be a path")
        if not isinstance(self.cache, bool):
            raise ConfigInvalidFault("cache", "must be a boolean")
        if self.layout is True or not isinstance(self.layout, (str, bool)):
            raise ConfigInvalidFault("layout", "must be a view identifier or False")
        if not isinstance(self.helpers, Mapping):
            raise ConfigInvalidFault("helpers", "must be a mapping")
        if not self.variable_start_string or not self.variable_end_string:
            raise ConfigInvalidFault("variable_start_string", "delimiters must not be empty")
        try:
            "".encode(self.encoding)
        except LookupError:
            raise ConfigInvalidFault("encoding", f"unknown encoding {self.encoding!r}")

    @property
    def root_path(self) -> Path:
        return Path(self.root)

    def merge(self, options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "RenderSettings":
        """
        Return new settings with the given options applied.

        Unspecified options keep their current values. Unknown option
        names raise ConfigInvalidFault.
        """
        updates: Dict[str, Any] = dict(options or {})
        updates.update(kwargs)

        known = {f.name for f in fields(self)}
        for key in updates:
            if key not in known:
                raise ConfigInvalidFault(key, "unknown option")

        if "root" in updates and isinstance(updates["root"], os.PathLike):
            updates["root"] = os.fspath(updates["root"])
        if isinstance(updates.get("helpers"), Mapping):
            updates["helpers"] = dict(updates["helpers"])
        elif "helpers" in updates and updates["helpers"] is None:
            updates["helpers"] = {}

        return replace(self, **updates)

    @classmethod
    def from_env(
        cls,
        prefix: str = "VIEWRENDER_",
        env_file: Optional[str] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "RenderSettings":
        """
        Build settings from environment variables.

        Args:
            prefix: Environment variable prefix
            env_file: Optional .env file; process environment wins over it
            overrides: Explicit options applied last

        Returns:
            Validated RenderSettings
        """
        values: Dict[str, Optional[str]] = {}
        if env_file and Path(env_file).exists():
            values.update(dotenv_values(env_file))
        values.update(os.environ)

        options: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name == "helpers":
                continue
            key = f"{prefix}{f.name.upper()}"
            raw = values.get(key)
            if raw is None:
                continue
            if f.name == "layout":
                options["layout"] = False if raw.strip().lower() in _FALSE | {""} else raw
            elif f.name in ("cache", "autoescape", "sandbox", "strict_undefined"):
                options[f.name] = parse_bool(key, raw)
            else:
                options[f.name] = raw

        return cls().merge(options).merge(overrides)
