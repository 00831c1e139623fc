"""viewrender CLI.

Commands:
    render  - Render a view through the full pipeline
    expand  - Print a view's source with partials inlined
    list    - List views under the root directory
    inspect - Compile views and report faults and cache statistics
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from . import __version__
from .config import RenderSettings
from .engine import ViewEngine
from .faults import Failed, Fault
from .http import Request, Response
from .middleware import ViewRenderMiddleware


def _error(message: str) -> None:
    click.echo(click.style(message, fg="red"), err=True)


def _build_engine(root: Optional[str], env_file: Optional[str]) -> ViewEngine:
    overrides: Dict[str, Any] = {}
    if root:
        overrides["root"] = root
    try:
        settings = RenderSettings.from_env(env_file=env_file, overrides=overrides)
    except Fault as fault:
        _error(str(fault))
        sys.exit(2)
    return ViewEngine(settings)


def _load_context(context: Optional[str], context_file: Optional[str]) -> Dict[str, Any]:
    if context and context_file:
        raise click.UsageError("--context and --context-file are mutually exclusive")
    raw = context
    if context_file:
        raw = Path(context_file).read_text(encoding="utf-8")
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"invalid JSON: {exc}")
    if not isinstance(data, dict):
        raise click.BadParameter("context must be a JSON object")
    return data


async def render_once(
    engine: ViewEngine,
    view: str,
    context: Dict[str, Any],
) -> Tuple[Response, List[Fault]]:
    """Render one view into a fresh response, collecting escalated faults."""
    faults: List[Fault] = []
    request = Request("GET", "/" + view.lstrip("/"))
    response = Response(request)
    middleware = ViewRenderMiddleware(engine, on_error=lambda req, res, fault: faults.append(fault))

    async def handler(req: Request, res: Response) -> Response:
        await res.render(view, context)
        return res

    await middleware(request, response, handler)
    return response, faults


@click.group()
@click.version_option(version=__version__, prog_name="viewrender")
@click.option("--env-file", type=click.Path(dir_okay=False), default=None,
              help="Load VIEWRENDER_* settings from a .env file")
@click.pass_context
def cli(ctx: click.Context, env_file: Optional[str]):
    """Render views with static partials and layouts."""
    ctx.ensure_object(dict)
    ctx.obj["env_file"] = env_file


@cli.command("render")
@click.argument("view")
@click.option("--root", type=click.Path(file_okay=False), help="Views root directory")
@click.option("--layout", type=str, default=None, help="Layout view identifier")
@click.option("--no-layout", is_flag=True, help="Render without a layout")
@click.option("--context", "context", type=str, default=None, help="Template data as JSON")
@click.option("--context-file", type=click.Path(exists=True, dir_okay=False),
              help="Template data from a JSON file")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write output to file")
@click.pass_context
def render_cmd(
    ctx: click.Context,
    view: str,
    root: Optional[str],
    layout: Optional[str],
    no_layout: bool,
    context: Optional[str],
    context_file: Optional[str],
    output: Optional[str],
):
    """
    Render VIEW through the full pipeline.

    Examples:
      viewrender render index.html --root views --context '{"title": "Home"}'
      viewrender render feed.xml --no-layout -o feed.xml
    """
    if layout and no_layout:
        raise click.UsageError("--layout and --no-layout are mutually exclusive")

    engine = _build_engine(root, ctx.obj["env_file"])
    data = _load_context(context, context_file)
    if no_layout:
        data["layout"] = False
    elif layout:
        data["layout"] = layout

    response, faults = asyncio.run(render_once(engine, view, data))
    if faults:
        for fault in faults:
            _error(str(fault))
        sys.exit(1)

    if output:
        Path(output).write_bytes(response.body)
        click.echo(click.style(f"Wrote {len(response.body)} bytes to {output}", fg="green"), err=True)
    else:
        click.echo(response.body, nl=False)


@cli.command("expand")
@click.argument("view")
@click.option("--root", type=click.Path(file_okay=False), help="Views root directory")
@click.pass_context
def expand_cmd(ctx: click.Context, view: str, root: Optional[str]):
    """Print VIEW's source with every partial inlined."""
    engine = _build_engine(root, ctx.obj["env_file"])
    path = engine.settings.root_path / view
    try:
        source = path.read_text(encoding=engine.settings.encoding)
    except (OSError, ValueError) as exc:
        _error(f"Cannot read view '{view}' at {path}: {exc}")
        sys.exit(1)
    click.echo(engine.partials.resolve(source, current=view), nl=False)


@cli.command("list")
@click.option("--root", type=click.Path(file_okay=False), help="Views root directory")
@click.pass_context
def list_cmd(ctx: click.Context, root: Optional[str]):
    """List views under the root directory."""
    engine = _build_engine(root, ctx.obj["env_file"])
    for view in engine.list_views():
        click.echo(view)


async def compile_views(engine: ViewEngine, views: List[str]) -> Dict[str, Optional[Fault]]:
    """Compile each view once, returning its fault or None."""
    results: Dict[str, Optional[Fault]] = {}
    for view in views:
        result = await engine.get_compiled(view)
        results[view] = result.fault if isinstance(result, Failed) else None
    return results


@cli.command("inspect")
@click.argument("views", nargs=-1)
@click.option("--root", type=click.Path(file_okay=False), help="Views root directory")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def inspect_cmd(ctx: click.Context, views: Tuple[str, ...], root: Optional[str], as_json: bool):
    """
    Compile VIEWS (default: every view) and report faults and cache state.

    Examples:
      viewrender inspect --root views
      viewrender inspect index.html layout.html --root views --json
    """
    engine = _build_engine(root, ctx.obj["env_file"])
    names = list(views) or engine.list_views()
    results = asyncio.run(compile_views(engine, names))
    failed = any(fault is not None for fault in results.values())

    if as_json:
        click.echo(json.dumps({
            "views": {
                view: fault.to_dict() if fault is not None else None
                for view, fault in results.items()
            },
            "cached": engine.cache.keys(),
            "cache": engine.cache.stats(),
        }, indent=2))
    else:
        for view, fault in results.items():
            if fault is None:
                click.echo(f"{click.style('ok', fg='green')}    {view}")
            else:
                click.echo(f"{click.style('fail', fg='red')}  {view}: {fault}")
        stats = engine.cache.stats()
        click.echo(
            f"\ncache: {stats['entries']} entries, {stats['hits']} hits, "
            f"{stats['misses']} misses" + ("" if stats["enabled"] else " (disabled)")
        )

    if failed:
        sys.exit(1)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
