"""rangeflow CLI: Typer entry point.

Commands
--------
points      Sum the ratings of every accepted part.
ranges      Count every accepted combination of ratings in the domain.
check       Report undefined references, unreachable workflows and cycles.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

import typer
import yaml

from .config import EvaluatorConfig, load_config
from .errors import MissingInputArgument, RangeflowError
from .grammar import parse_problem
from .logic.analyzer import WorkflowAnalyzer
from .logic.evaluator import count_accepted, score_parts
from .models import Problem

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="rangeflow",
    help="Sort parts through workflow rules, one at a time or as whole rating ranges.",
    add_completion=False,
)

InputArg = typer.Argument(None, help="Path to the puzzle input file.", show_default=False)
ConfigOpt = typer.Option(None, "--config", "-c", help="YAML file with evaluator settings.")
VerboseOpt = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")


def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(name)-30s  %(levelname)-7s  %(message)s",
    )


def _load(input_file: Optional[Path], config_path: Optional[Path], verbose: bool):
    config = load_config(config_path)
    _setup_logging(verbose or config.debug)
    if input_file is None:
        raise MissingInputArgument()
    logger.info("Read %s", input_file)
    try:
        text = input_file.read_text(encoding="utf-8")
    except OSError as e:
        raise RangeflowError(f"Couldn't read input file {input_file}: {e}") from e
    return parse_problem(text), config


def _run(action: Callable[[], None]) -> None:
    """Run a command body, turning rangeflow errors into exit code 1."""
    try:
        action()
    except RangeflowError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _checked(problem: Problem, config: EvaluatorConfig) -> None:
    result = WorkflowAnalyzer().analyze(problem.system, config.entry)
    result.raise_for_errors(include_cycles=False)


@app.command()
def points(
    input_file: Optional[Path] = InputArg,
    config: Optional[Path] = ConfigOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """Sum the ratings of every accepted part."""

    def action() -> None:
        problem, cfg = _load(input_file, config, verbose)
        result = score_parts(problem.system, problem.parts, cfg.entry, cfg.max_steps)
        typer.echo(result)

    _run(action)


@app.command()
def ranges(
    input_file: Optional[Path] = InputArg,
    config: Optional[Path] = ConfigOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """Count every accepted combination of ratings in the configured domain."""

    def action() -> None:
        problem, cfg = _load(input_file, config, verbose)
        _checked(problem, cfg)
        typer.echo(count_accepted(problem.system, cfg.domain(), cfg.entry, cfg.max_steps))

    _run(action)


@app.command()
def check(
    input_file: Optional[Path] = InputArg,
    config: Optional[Path] = ConfigOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """Report undefined references, unreachable workflows and cycles."""

    def action() -> None:
        problem, cfg = _load(input_file, config, verbose)
        result = WorkflowAnalyzer().analyze(problem.system, cfg.entry)
        typer.echo(yaml.safe_dump(result.to_dict(), default_flow_style=False, sort_keys=False))
        if not result.ok:
            raise typer.Exit(1)

    _run(action)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
