"""
View Engine - Cached compile and guarded execution of views.

Provides:
- Async view loading with a compiled template cache
- Static partial expansion before compilation
- Execution that reports failures as values instead of raising
- Two-stage (view, layout) rendering through the LayoutComposer

Example:
    engine = ViewEngine.configure(root="views", layout="layout.html")

    html = await engine.render_to_string("index.html", {"title": "Home"})
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import aiofiles
from jinja2 import TemplateSyntaxError

from .cache import TemplateCache
from .compiler import CompiledView, ViewCompiler
from .config import RenderSettings
from .context import create_render_context, inject_helpers
from .faults import (
    Failed,
    Rendered,
    RenderResult,
    TemplateCompileFault,
    TemplateExecutionFault,
    ViewNotFoundFault,
)
from .layout import LayoutComposer
from .partials import PartialResolver


logger = logging.getLogger("viewrender.engine")


class ViewEngine:
    """
    Render pipeline owning settings, compiler and template cache.

    One engine is built at startup and shared by every render call.
    Nothing is kept at module level, so separate engines are fully
    isolated from each other.

    Args:
        settings: Render settings (defaults when omitted)
    """

    def __init__(self, settings: Optional[RenderSettings] = None):
        self.settings = settings or RenderSettings()
        self.cache = TemplateCache(enabled=self.settings.cache)
        self.compiler = ViewCompiler(self.settings)
        self.partials = PartialResolver(
            self.settings.root,
            encoding=self.settings.encoding,
            variable_start_string=self.settings.variable_start_string,
            variable_end_string=self.settings.variable_end_string,
        )
        self.reads = 0

    @classmethod
    def configure(cls, options: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "ViewEngine":
        """Build an engine from default settings merged with options."""
        return cls(RenderSettings().merge(options, **kwargs))

    # ------------------------------------------------------------------
    # Compile stage
    # ------------------------------------------------------------------

    async def read_view(self, view: str) -> RenderResult:
        """Read a view file without blocking the event loop."""
        path = self.settings.root_path / view
        self.reads += 1
        # ValueError covers undecodable bytes and NUL characters in the path
        try:
            async with aiofiles.open(path, "r", encoding=self.settings.encoding) as f:
                source = await f.read()
        except (OSError, ValueError) as exc:
            fault = ViewNotFoundFault(view, str(path), str(exc))
            fault.__cause__ = exc
            return Failed(fault)
        return Rendered(source)

    def compile(self, source: str, view: str) -> RenderResult:
        """Expand partials in ``source`` and compile it as ``view``."""
        expanded = self.partials.resolve(source, current=view)
        try:
            compiled = self.compiler.compile(expanded, view)
        except TemplateSyntaxError as exc:
            fault = TemplateCompileFault(view, exc.message or str(exc), exc.lineno)
            fault.__cause__ = exc
            return Failed(fault)
        logger.debug("Compiled view %s", view)
        return Rendered(compiled)

    async def get_compiled(self, view: str) -> RenderResult:
        """
        Get the compiled renderer for a view.

        Cached renderers are returned without I/O. Otherwise the file is
        read, partials are expanded, the result is compiled and, when
        caching is enabled, stored.

        Returns:
            Rendered(CompiledView) or Failed(fault)
        """
        compiled = self.cache.get(view)
        if compiled is not None:
            return Rendered(compiled)

        result = await self.read_view(view)
        if isinstance(result, Failed):
            return result

        result = self.compile(result.output, view)
        if isinstance(result, Rendered):
            self.cache.set(view, result.output)
        return result

    # ------------------------------------------------------------------
    # Execute stage
    # ------------------------------------------------------------------

    def execute(self, compiled: CompiledView, context: Mapping[str, Any]) -> RenderResult:
        """
        Run a compiled renderer against a context.

        ``context["scope"]``, when present, is passed as the renderer's
        scope. Any exception raised by the template is captured.

        Returns:
            Rendered(str) or Failed(TemplateExecutionFault)
        """
        try:
            output = compiled(context, scope=context.get("scope"))
        except Exception as exc:
            fault = TemplateExecutionFault(compiled.name, str(exc))
            fault.__cause__ = exc
            return Failed(fault)
        return Rendered(output)

    async def render_view(self, view: str, context: Mapping[str, Any]) -> RenderResult:
        """Compile (or fetch) and execute a single view."""
        result = await self.get_compiled(view)
        if isinstance(result, Failed):
            return result
        return self.execute(result.output, context)

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def prepare_context(
        self,
        options: Optional[Mapping[str, Any]] = None,
        request: Any = None,
        response: Any = None,
    ) -> Dict[str, Any]:
        """Fresh render context with helpers and request injected."""
        context = create_render_context(options)
        return inject_helpers(context, self.settings.helpers, request, response)

    async def render_to_string(
        self,
        view: str,
        options: Optional[Mapping[str, Any]] = None,
        *,
        request: Any = None,
        response: Any = None,
    ) -> str:
        """
        Render a view (wrapped in its layout) outside of a response.

        Raises:
            Fault: The fault of the failed stage
        """
        context = self.prepare_context(options, request, response)
        result = await LayoutComposer(self).compose(view, context)
        if isinstance(result, Failed):
            raise result.fault
        return result.output

    def list_views(self) -> list[str]:
        """List template files under root, as view identifiers."""
        root = self.settings.root_path
        if not root.is_dir():
            return []
        return sorted(
            path.relative_to(root).as_posix()
            for path in root.rglob("*")
            if path.is_file() and not path.name.startswith(".")
        )
