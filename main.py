"""Gatekeeper generator main CLI.

This module exposes a small Typer based command line tool that turns a
tree of Rego policies into Gatekeeper ``ConstraintTemplate`` and
constraint resources.  Every stage logs what it found and wrote so a
run can be followed from the console.

Examples::

    # Create constraints in the same directories as the policies
    python main.py create examples

    # Save the constraints in a specific directory
    python main.py create examples --output generated-constraints

    # Create constraints with the enforcement action set to dryrun
    python main.py create examples --dryrun
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from gatekeeper_gen.stages import driver
from gatekeeper_gen.utils.errors import GenerationError
from gatekeeper_gen.utils.models import GenerationConfig


LOGGER = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

app = typer.Typer(help="Create Gatekeeper resources from Rego policies")


# ---------------------------------------------------------------------------


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log every matcher and library decision",
    ),
) -> None:
    """Configure logging for all commands."""

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@app.command()
def create(
    path: Path = typer.Argument(
        Path("."),
        help="Directory holding the Rego policies",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        envvar="GATEKEEPER_GEN_OUTPUT",
        file_okay=False,
        help="Specify an output directory for the Gatekeeper resources",
    ),
    dryrun: bool = typer.Option(
        False,
        "--dryrun",
        "-d",
        envvar="GATEKEEPER_GEN_DRYRUN",
        help="Sets the enforcement action of the constraints to dryrun",
    ),
) -> None:
    """Create Gatekeeper constraints from Rego policies."""

    config = GenerationConfig(output_dir=output, dry_run=dryrun)
    try:
        artifacts = driver.run_create(path, config)
    except GenerationError as exc:
        message = f"{exc}: {exc.__cause__}" if exc.__cause__ else str(exc)
        LOGGER.error("create failed: %s", message)
        typer.echo(f"Error: {message}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"Wrote {len(artifacts)} files")


if __name__ == "__main__":  # pragma: no cover
    app()
