"""
Layout Composer - Two-stage view/layout rendering.

States:
    RENDER_VIEW -> RENDER_LAYOUT -> FINALIZE
    RENDER_VIEW -> FINALIZE          (layout disabled)
    RENDER_VIEW | RENDER_LAYOUT -> FAIL
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional, TYPE_CHECKING, Union

from .context import inject_body
from .faults import Failed, RenderResult

if TYPE_CHECKING:
    from .engine import ViewEngine
    from .http import Response


logger = logging.getLogger("viewrender.layout")


class RenderStage(str, Enum):
    RENDER_VIEW = "render_view"
    RENDER_LAYOUT = "render_layout"
    FINALIZE = "finalize"
    FAIL = "fail"


class LayoutComposer:
    """
    Renders a view, then the layout around it.

    The view output reaches the layout through ``context["body"]`` on the
    same context object; nothing is concatenated.

    Args:
        engine: ViewEngine providing compile/execute
    """

    def __init__(self, engine: "ViewEngine"):
        self.engine = engine
        self.stage = RenderStage.RENDER_VIEW

    def select_layout(self, context: Dict[str, Any]) -> Optional[str]:
        """
        Layout to wrap the view in, or None.

        A string ``context["layout"]`` overrides the configured layout;
        ``False`` disables layouts for this render.
        """
        override: Union[str, bool, None] = context.get("layout")
        if override is False:
            return None
        layout = override if isinstance(override, str) else self.engine.settings.layout
        return layout or None

    async def compose(self, view: str, context: Dict[str, Any]) -> RenderResult:
        """
        Run the state machine up to (not including) emission.

        Returns:
            Rendered(final text) on reaching FINALIZE, Failed(fault) on FAIL
        """
        self.stage = RenderStage.RENDER_VIEW
        result = await self.engine.render_view(view, context)
        if isinstance(result, Failed):
            self.stage = RenderStage.FAIL
            return result

        layout = self.select_layout(context)
        if layout is None:
            self.stage = RenderStage.FINALIZE
            return result

        self.stage = RenderStage.RENDER_LAYOUT
        inject_body(context, result.output)
        result = await self.engine.render_view(layout, context)
        if isinstance(result, Failed):
            self.stage = RenderStage.FAIL
            return result

        self.stage = RenderStage.FINALIZE
        return result

    async def render(self, response: "Response", view: str, context: Dict[str, Any]) -> bool:
        """
        Compose and emit to ``response``, or escalate the fault.

        Returns:
            True when a body was emitted
        """
        result = await self.compose(view, context)
        if isinstance(result, Failed):
            logger.debug("Render of %s failed: %s", view, result.fault)
            await response.request.escalate(result.fault)
            return False

        self.finalize(response, result.output)
        return True

    def finalize(self, response: "Response", output: str) -> None:
        """Encode output and send it as the complete response body."""
        settings = self.engine.settings
        payload = output.encode(settings.encoding)
        response.set_header("Content-Length", str(len(payload)))
        if "content-type" not in response.headers:
            response.set_header("Content-Type", settings.content_type)
        response.end(payload)
