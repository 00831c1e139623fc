"""
viewrender - Server-side view rendering with static partials and layouts.

A render call expands ``partial('...')`` directives into the view source,
compiles it with Jinja2 (cached per view), executes it against the
render context and wraps the output in a layout template.

Example:
    from viewrender import ViewEngine, ViewRenderMiddleware

    engine = ViewEngine.configure(
        root="views",
        cache=True,              # must be True in production
        layout="layout.html",    # or False for no layout
        helpers={
            "sitename": "NodeBlog Engine",
            "csrf": lambda request, response: request.state.get("csrf", ""),
        },
    )
    app.add_middleware(ViewRenderMiddleware(engine))

    # in a handler
    await response.render("index.html", {"title": "Index Page", "items": items})
    await response.render("blue.html", {"items": items, "layout": False})
"""

__version__ = "0.1.0"

from .cache import TemplateCache
from .compiler import CompiledView, ViewCompiler, create_environment
from .config import RenderSettings
from .context import create_render_context, inject_body, inject_helpers
from .engine import ViewEngine
from .faults import (
    ConfigInvalidFault,
    EngineNotBoundFault,
    Failed,
    Fault,
    FaultDomain,
    HelperFailedFault,
    InvalidHeaderFault,
    PartialUnreadableFault,
    Rendered,
    RenderResult,
    ResponseAlreadySentFault,
    Severity,
    TemplateCompileFault,
    TemplateExecutionFault,
    ViewNotFoundFault,
)
from .http import Request, Response
from .layout import LayoutComposer, RenderStage
from .middleware import ViewRenderMiddleware, default_error_handler
from .partials import PartialResolver, build_partial_pattern, normalize_view

__all__ = [
    # Core
    "ViewEngine",
    "RenderSettings",
    "TemplateCache",
    "PartialResolver",
    "ViewCompiler",
    "CompiledView",
    "LayoutComposer",
    "RenderStage",

    # Context
    "create_render_context",
    "inject_helpers",
    "inject_body",

    # HTTP binding
    "Request",
    "Response",
    "ViewRenderMiddleware",
    "default_error_handler",

    # Helpers
    "build_partial_pattern",
    "normalize_view",
    "create_environment",

    # Faults
    "Fault",
    "FaultDomain",
    "Severity",
    "ConfigInvalidFault",
    "ViewNotFoundFault",
    "PartialUnreadableFault",
    "TemplateCompileFault",
    "TemplateExecutionFault",
    "HelperFailedFault",
    "ResponseAlreadySentFault",
    "InvalidHeaderFault",
    "EngineNotBoundFault",
    "Rendered",
    "Failed",
    "RenderResult",
]
