"""
Render context - Building and injecting helpers into render contexts.

A render context is a plain dict allocated per render call. Helpers are
merged once per top-level render; the layout stage reuses the same dict
and only gains ``body``.
"""

from typing import Any, Dict, Mapping, Optional

from markupsafe import Markup

from .faults import HelperFailedFault


def create_render_context(options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Fresh context dict seeded from caller options."""
    return dict(options or {})


def inject_helpers(
    context: Dict[str, Any],
    helpers: Mapping[str, Any],
    request: Any = None,
    response: Any = None,
) -> Dict[str, Any]:
    """
    Merge configured helpers into a render context.

    Callable helpers are invoked as ``helper(request, response)`` and their
    result is injected; other values are injected as-is. Helpers replace
    same-named caller values. ``request`` is added when the context does
    not carry one.

    Args:
        context: Render context (mutated)
        helpers: Name -> static value or callable(request, response)
        request: Current request
        response: Current response

    Returns:
        The same context

    Raises:
        HelperFailedFault: If a callable helper raises
    """
    for name, helper in helpers.items():
        if callable(helper):
            try:
                helper = helper(request, response)
            except Exception as exc:
                raise HelperFailedFault(name, str(exc)) from exc
        context[name] = helper

    if context.get("request") is None:
        context["request"] = request

    return context


def inject_body(context: Dict[str, Any], body: str) -> None:
    """
    Set the rendered view output as the layout's ``body``.

    The output is already rendered (and escaped where needed), so it is
    marked safe for autoescaping layouts.
    """
    context["body"] = Markup(body)
