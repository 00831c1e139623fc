"""
Render faults - Core fault types and render result values.

Defines:
- Fault base class (structured fault objects)
- FaultDomain (explicit fault domains)
- Severity levels
- Concrete faults for each render failure kind
- Rendered / Failed result values returned across the render boundary
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


# ============================================================================
# Severity & Domain
# ============================================================================

class Severity(str, Enum):
    """
    Fault severity levels.

    Determines the logging level used when a fault is reported.
    """
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class FaultDomain:
    """
    Fault domains (taxonomy).

    Identifies the functional area where a fault occurred.
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.value = name
        self.description = description

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"FaultDomain(name='{self.name}')"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FaultDomain):
            return self.name == other.name
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(self.name)


FaultDomain.CONFIG = FaultDomain("config", "Configuration errors")
FaultDomain.IO = FaultDomain("io", "View file I/O")
FaultDomain.TEMPLATE = FaultDomain("template", "Template compile and execution errors")
FaultDomain.RESPONSE = FaultDomain("response", "Response emission errors")


DOMAIN_DEFAULTS = {
    FaultDomain.CONFIG: Severity.FATAL,
    FaultDomain.IO: Severity.ERROR,
    FaultDomain.TEMPLATE: Severity.ERROR,
    FaultDomain.RESPONSE: Severity.ERROR,
}


# ============================================================================
# Fault - Base Class
# ============================================================================

class Fault(Exception):
    """
    Base fault class - structured, typed fault object.

    A fault is a first-class value with a stable machine-readable code,
    a human-readable message, a domain and a severity. Faults may be
    raised, or carried inside a ``Failed`` result.

    Attributes:
        code: Stable machine-readable identifier (e.g., "VIEW_NOT_FOUND")
        message: Human-readable summary
        domain: Fault domain
        severity: Fault severity
        metadata: Additional context data (view identifier, path, ...)
    """

    def __init__(
        self,
        code: str | None = None,
        message: str | None = None,
        *,
        domain: FaultDomain | None = None,
        severity: Optional[Severity] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        self.code = code if code is not None else getattr(self, "code", None)
        self.message = message if message is not None else getattr(self, "message", None)
        self.domain = domain if domain is not None else getattr(self, "domain", None)

        if self.code is None or self.message is None or self.domain is None:
            raise TypeError(f"{self.__class__.__name__} missing required code, message, or domain")

        super().__init__(self.message)

        self.severity = severity or getattr(self, "severity", None) or DOMAIN_DEFAULTS.get(
            self.domain, Severity.ERROR
        )
        self.metadata = metadata or {}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(code={self.code!r}, domain={self.domain.value}, "
            f"severity={self.severity.value})"
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize fault to dictionary.

        Returns:
            Dictionary representation suitable for logging/serialization
        """
        return {
            "code": self.code,
            "message": self.message,
            "domain": self.domain.value,
            "severity": self.severity.value,
            "metadata": self.metadata,
            "cause": repr(self.__cause__) if self.__cause__ else None,
        }


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigInvalidFault(Fault):
    """Configuration value is invalid or unknown."""

    def __init__(self, key: str, reason: str):
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Configuration key '{key}' is invalid: {reason}",
            domain=FaultDomain.CONFIG,
            metadata={"key": key, "reason": reason},
        )


# ============================================================================
# IO Faults
# ============================================================================

class ViewNotFoundFault(Fault):
    """View or layout file could not be read."""

    def __init__(self, view: str, path: str, reason: str = ""):
        super().__init__(
            code="VIEW_NOT_FOUND",
            message=f"Cannot read view '{view}' at {path}" + (f": {reason}" if reason else ""),
            domain=FaultDomain.IO,
            metadata={"view": view, "path": path},
        )


class PartialUnreadableFault(Fault):
    """Partial file could not be read. Recovered by empty substitution."""

    def __init__(self, view: str, path: str, reason: str = ""):
        super().__init__(
            code="PARTIAL_UNREADABLE",
            message=f"Cannot load view partial '{view}' at {path}" + (f": {reason}" if reason else ""),
            domain=FaultDomain.IO,
            severity=Severity.WARN,
            metadata={"view": view, "path": path},
        )


# ============================================================================
# TEMPLATE Faults
# ============================================================================

class TemplateCompileFault(Fault):
    """Template source failed to compile."""

    def __init__(self, view: str, reason: str, lineno: Optional[int] = None):
        super().__init__(
            code="TEMPLATE_COMPILE_ERROR",
            message=f"Template '{view}' failed to compile: {reason}",
            domain=FaultDomain.TEMPLATE,
            metadata={"view": view, "lineno": lineno},
        )


class TemplateExecutionFault(Fault):
    """Compiled template raised while executing."""

    def __init__(self, view: str, reason: str):
        super().__init__(
            code="TEMPLATE_EXECUTION_ERROR",
            message=f"Template '{view}' failed to render: {reason}",
            domain=FaultDomain.TEMPLATE,
            metadata={"view": view},
        )


class HelperFailedFault(Fault):
    """A callable helper raised while building the render context."""

    def __init__(self, helper: str, reason: str):
        super().__init__(
            code="HELPER_FAILED",
            message=f"Helper '{helper}' failed: {reason}",
            domain=FaultDomain.TEMPLATE,
            metadata={"helper": helper},
        )


# ============================================================================
# RESPONSE Faults
# ============================================================================

class ResponseAlreadySentFault(Fault):
    """A payload was emitted twice on the same response."""
    code = "RESPONSE_ALREADY_SENT"
    message = "Response body has already been sent"
    domain = FaultDomain.RESPONSE


class InvalidHeaderFault(Fault):
    """Header name or value contains control characters (injection attempt)."""

    def __init__(self, name: str):
        super().__init__(
            code="INVALID_HEADER",
            message=f"Invalid header {name!r}",
            domain=FaultDomain.RESPONSE,
            metadata={"header": name},
        )


class EngineNotBoundFault(Fault):
    """render() was called on a response no ViewEngine was bound to."""
    code = "ENGINE_NOT_BOUND"
    message = "No ViewEngine bound to response. Ensure ViewRenderMiddleware is installed."
    domain = FaultDomain.RESPONSE


# ============================================================================
# Render results
# ============================================================================

@dataclass(frozen=True)
class Rendered:
    """
    Render stage succeeded.

    Contains the produced text (or compiled renderer for the compile stage).
    """
    output: Any


@dataclass(frozen=True)
class Failed:
    """
    Render stage failed.

    The fault is carried as a value; it is never raised across the
    compile/execute boundary.
    """
    fault: Fault


RenderResult = Rendered | Failed
