"""CLI entry point for mermaid-layout."""

import json
import logging
import sys

import click
from pydantic import ValidationError

from mermaid_layout.animation.scheduler import compute_delays
from mermaid_layout.config import AnimationOptions
from mermaid_layout.interchange import graph_from_dict, layout_to_dict, schedule_to_dict
from mermaid_layout.layout import layout
from mermaid_layout.types import DiagramKind, Direction

_KINDS = [kind.value for kind in DiagramKind]


def _read_json(path: str | None, what: str) -> object:
    try:
        if path is None or path == "-":
            return json.load(sys.stdin)
        with open(path) as f:
            return json.load(f)
    except OSError as e:
        click.echo(f"error: cannot read {what} '{path}': {e}", err=True)
        sys.exit(1)
    except json.JSONDecodeError as e:
        click.echo(f"error: {what} is not valid JSON: {e}", err=True)
        sys.exit(1)


@click.command()
@click.argument("input", required=False, type=click.Path(exists=True, allow_dash=True))
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
@click.option("--animate", "-a", "animate", is_flag=True, help="Also compute the animation schedule")
@click.option(
    "--animation-json",
    "animation_json",
    type=click.Path(exists=True),
    default=None,
    help="JSON file with animation options (implies --animate)",
)
@click.option("--kind", "-k", "kind", type=click.Choice(_KINDS), default=None, help="Force the diagram kind")
@click.option("--direction", "-d", "direction", type=str, default=None, help="Override direction (TD, TB, BT, LR, RL)")
@click.option("--verbose", "-v", "verbose", is_flag=True, help="Log layout progress to stderr")
def main(
    input: str | None,
    output: str | None,
    animate: bool,
    animation_json: str | None,
    kind: str | None,
    direction: str | None,
    verbose: bool,
) -> None:
    """Lay out a JSON logical graph and print the positioned layout as JSON."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    data = _read_json(input, "input")
    if not isinstance(data, dict):
        click.echo("error: input must be a JSON object", err=True)
        sys.exit(1)

    try:
        graph = graph_from_dict(data)
        if kind is not None:
            graph.kind = DiagramKind(kind)
        if direction is not None:
            graph.direction = Direction.parse(direction)
        positioned = layout(graph)
    except ValidationError as e:
        click.echo(f"error: invalid graph ({e.error_count()} problem(s))", err=True)
        for problem in e.errors():
            where = ".".join(str(part) for part in problem["loc"]) or "input"
            click.echo(f"  {where}: {problem['msg']}", err=True)
        sys.exit(1)
    except ValueError as e:
        click.echo(f"error: {e}", err=True)
        sys.exit(1)

    result: dict[str, object] = {"layout": layout_to_dict(positioned)}

    if animate or animation_json:
        overrides = _read_json(animation_json, "animation options") if animation_json else {}
        if not isinstance(overrides, dict):
            click.echo("error: animation options must be a JSON object", err=True)
            sys.exit(1)
        opts = AnimationOptions.resolve(overrides) if overrides else AnimationOptions()
        result["schedule"] = schedule_to_dict(compute_delays(positioned, opts))

    rendered = json.dumps(result, indent=2)

    if output:
        try:
            with open(output, "w") as f:
                f.write(rendered + "\n")
        except OSError as e:
            click.echo(f"error: cannot write '{output}': {e}", err=True)
            sys.exit(1)
    else:
        click.echo(rendered)


if __name__ == "__main__":
    main()
