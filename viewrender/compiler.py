"""
Compiler - Jinja2 integration turning expanded view source into renderers.

The Jinja2 environment is built once per engine from RenderSettings.
Templates are compiled from already partial-expanded source, so no Jinja2
loader is involved: the pipeline owns file access.
"""

from typing import Any, Mapping, Optional

from jinja2 import Environment, StrictUndefined, Template, Undefined
from jinja2.exceptions import TemplateRuntimeError
from jinja2.sandbox import SandboxedEnvironment

from .config import RenderSettings


def _dynamic_partial(view: Any) -> str:
    raise TemplateRuntimeError(
        f"partial() only accepts a quoted view name, got {view!r}"
    )


def create_environment(settings: RenderSettings) -> Environment:
    """
    Create the Jinja2 environment for the given settings.

    Args:
        settings: Render settings

    Returns:
        Configured (optionally sandboxed) Environment
    """
    env_class = SandboxedEnvironment if settings.sandbox else Environment

    env = env_class(
        autoescape=settings.autoescape,
        undefined=StrictUndefined if settings.strict_undefined else Undefined,
        variable_start_string=settings.variable_start_string,
        variable_end_string=settings.variable_end_string,
        keep_trailing_newline=True,
    )

    # Literal partials never reach the engine; anything left is dynamic.
    env.globals["partial"] = _dynamic_partial
    return env


class CompiledView:
    """
    Compiled renderer for one view.

    Pure function of (data, scope) -> str. The scope, when given, is
    exposed to the template as ``scope``.
    """

    __slots__ = ("name", "template")

    def __init__(self, name: str, template: Template):
        self.name = name
        self.template = template

    def __call__(self, data: Mapping[str, Any], scope: Optional[Any] = None) -> str:
        if scope is not None:
            return self.template.render(data, scope=scope)
        return self.template.render(data)

    def __repr__(self) -> str:
        return f"CompiledView({self.name!r})"


class ViewCompiler:
    """
    Compiles partial-expanded source into CompiledView objects.

    Args:
        settings: Render settings the Jinja2 environment is built from
    """

    def __init__(self, settings: RenderSettings):
        self.env = create_environment(settings)
        self.compiles = 0

    def compile(self, source: str, name: str) -> CompiledView:
        """
        Compile template source.

        Args:
            source: Partial-expanded template text
            name: View identifier, used as the diagnostic filename

        Raises:
            jinja2.TemplateSyntaxError: If the source does not parse
        """
        code = self.env.compile(source, name=name, filename=name)
        template = self.env.template_class.from_code(
            self.env, code, self.env.make_globals(None)
        )
        self.compiles += 1
        return CompiledView(name, template)
