"""
Request/Response binding - The response-like surface render() attaches to.

Only what the pipeline needs is modelled: headers, a one-shot payload,
a link to the request, and the request's error continuation. Serving
these objects over a real server is left to the host application.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, TYPE_CHECKING, Union

from .faults import (
    EngineNotBoundFault,
    Fault,
    HelperFailedFault,
    InvalidHeaderFault,
    ResponseAlreadySentFault,
)
from .layout import LayoutComposer

if TYPE_CHECKING:
    from .engine import ViewEngine


Continuation = Callable[[Fault], Union[Awaitable[None], None]]


class Request:
    """
    Request-like object carrying per-request state and the error continuation.

    Args:
        method: HTTP method
        path: Request path
        headers: Request headers (names are case-insensitive)
        state: Initial per-request state
    """

    def __init__(
        self,
        method: str = "GET",
        path: str = "/",
        headers: Optional[Mapping[str, str]] = None,
        *,
        state: Optional[Dict[str, Any]] = None,
    ):
        self.method = method
        self.path = path
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.state: Dict[str, Any] = state or {}
        self.continuation: Optional[Continuation] = None

    async def escalate(self, fault: Fault) -> None:
        """
        Hand a render failure to the registered continuation.

        Raises the fault when no continuation is registered.
        """
        if self.continuation is None:
            raise fault
        result = self.continuation(fault)
        if inspect.isawaitable(result):
            await result

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.path}>"


class Response:
    """
    Response-like object with a single, complete payload.

    Args:
        request: Linked request
        status: HTTP status code
        headers: Initial headers
    """

    def __init__(
        self,
        request: Optional[Request] = None,
        *,
        status: int = 200,
        headers: Optional[Mapping[str, str]] = None,
    ):
        self.request = request
        self.status = status
        self.engine: Optional["ViewEngine"] = None
        self.body: Optional[bytes] = None
        self._headers: Dict[str, str] = {}
        for name, value in (headers or {}).items():
            self.set_header(name, value)

    @property
    def headers(self) -> Dict[str, str]:
        """Response headers, keyed by lowercased name."""
        return self._headers

    @property
    def sent(self) -> bool:
        return self.body is not None

    def set_header(self, name: str, value: str) -> None:
        """Set header (replaces existing)."""
        value = str(value)
        if any(c in name or c in value for c in ("\r", "\n", "\0")):
            raise InvalidHeaderFault(name)
        self._headers[name.lower()] = value

    def end(self, payload: Union[bytes, str] = b"") -> None:
        """
        Emit the complete response body.

        Raises:
            ResponseAlreadySentFault: If a body was already emitted
        """
        if self.sent:
            raise ResponseAlreadySentFault()
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        self.body = payload

    async def render(self, view: str, options: Optional[Mapping[str, Any]] = None) -> bool:
        """
        Render ``view`` (wrapped in its layout) into this response.

        On failure nothing is emitted and the fault is handed to
        ``request.escalate``.

        Args:
            view: View identifier relative to the engine root
            options: Template data; ``layout`` overrides or disables the layout

        Returns:
            True when a body was emitted
        """
        if self.engine is None:
            raise EngineNotBoundFault()

        try:
            context = self.engine.prepare_context(options, self.request, self)
        except HelperFailedFault as fault:
            await self.request.escalate(fault)
            return False
        return await LayoutComposer(self.engine).render(self, view, context)

    def __repr__(self) -> str:
        return f"<Response {self.status} sent={self.sent}>"
