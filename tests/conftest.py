"""
Shared test fixtures and helpers for the viewrender test suite.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from viewrender import Fault, Request, Response, ViewEngine, ViewRenderMiddleware


# ============================================================================
# View tree helpers
# ============================================================================


def write_views(root: Path, views: Dict[str, str]) -> Path:
    """Write ``{view_id: source}`` under root, creating subdirectories."""
    for name, source in views.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
    return root


@pytest.fixture
def views_root(tmp_path):
    """Empty views directory."""
    root = tmp_path / "views"
    root.mkdir()
    return root


@pytest.fixture
def make_engine(views_root):
    """Factory writing views and building an engine rooted at them."""

    def factory(views: Optional[Dict[str, str]] = None, **options: Any) -> ViewEngine:
        write_views(views_root, views or {})
        options.setdefault("root", str(views_root))
        return ViewEngine.configure(**options)

    return factory


# ============================================================================
# Request/Response helpers
# ============================================================================


class FaultRecorder:
    """Error continuation recording every escalated fault."""

    def __init__(self):
        self.faults: List[Fault] = []

    def __call__(self, request: Request, response: Response, fault: Fault) -> None:
        self.faults.append(fault)


@pytest.fixture
def recorder():
    return FaultRecorder()


async def render_response(
    engine: ViewEngine,
    view: str,
    options: Optional[Dict[str, Any]] = None,
    *,
    on_error=None,
    request: Optional[Request] = None,
) -> Response:
    """Run one render through the middleware and return the response."""
    request = request or Request("GET", "/" + view)
    response = Response(request)
    middleware = ViewRenderMiddleware(engine, on_error=on_error)

    async def handler(req: Request, res: Response) -> Response:
        await res.render(view, options)
        return res

    return await middleware(request, response, handler)
