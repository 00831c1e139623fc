"""
Render middleware - Binds a ViewEngine to every response.

Middleware signature follows the pipeline convention:

    async def __call__(request, response, next_handler) -> Response

Example:
    engine = ViewEngine.configure(root="views", helpers={"sitename": "Blog"})
    middleware = ViewRenderMiddleware(engine)

    async def index(request, response):
        await response.render("index.html", {"title": "Index Page"})
        return response

    response = await middleware(request, Response(request), index)
"""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from .engine import ViewEngine
from .faults import Fault, Severity
from .http import Request, Response


logger = logging.getLogger("viewrender.middleware")

Handler = Callable[[Request, Response], Awaitable[Response]]
ErrorHandler = Callable[[Request, Response, Fault], Union[Awaitable[None], None]]


def default_error_handler(request: Request, response: Response, fault: Fault) -> None:
    """
    Default error continuation.

    Logs the fault and answers a bare 500 if nothing was sent yet.
    """
    level = logging.WARNING if fault.severity in (Severity.INFO, Severity.WARN) else logging.ERROR
    logger.log(
        level,
        "Render failed for %s %s: %s",
        request.method,
        request.path,
        fault,
        exc_info=fault.__cause__,
    )
    if response.sent:
        return
    response.status = 500
    response.set_header("Content-Type", "text/plain; charset=utf-8")
    payload = b"Internal Server Error"
    response.set_header("Content-Length", str(len(payload)))
    response.end(payload)


class ViewRenderMiddleware:
    """
    View render middleware.

    Links the response to its request, binds the engine so handlers can
    call ``response.render(view, options)``, and registers the error
    continuation render failures are handed to.

    Args:
        engine: Shared ViewEngine
        on_error: Error continuation (default: log and answer 500)
    """

    def __init__(self, engine: ViewEngine, on_error: Optional[ErrorHandler] = None):
        self.engine = engine
        self.on_error = on_error or default_error_handler

    def bind(self, request: Request, response: Response) -> None:
        """Attach engine, request link and continuation."""
        if response.request is None:
            response.request = request
        response.engine = self.engine
        request.state["view_engine"] = self.engine

        async def continuation(fault: Fault) -> None:
            result = self.on_error(request, response, fault)
            if inspect.isawaitable(result):
                await result

        request.continuation = continuation

    async def __call__(
        self,
        request: Request,
        response: Response,
        next_handler: Handler,
    ) -> Response:
        self.bind(request, response)
        result = await next_handler(request, response)
        return result if result is not None else response
