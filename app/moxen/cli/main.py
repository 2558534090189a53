"""The `moxen` command line.

Global options are parsed here and stored on the Typer context; each
command lives in its own module under `moxen.cli.commands`.
"""

from pathlib import Path
from typing import Annotated

import typer

from moxen import __version__
from moxen.cli.commands import add, clean, info, new, package, publish, recover, register
from moxen.cli.helpers import configure_logging

app = typer.Typer(
    name="moxen",
    help="Package manager for World of Warcraft addon bundles.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"moxen version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log registry and packaging steps to stderr.",
        ),
    ] = False,
    directory: Annotated[
        Path | None,
        typer.Option(
            "--directory",
            "-d",
            help="Bundle root to operate on (defaults to the current directory).",
            file_okay=False,
        ),
    ] = None,
) -> None:
    """moxen - Package manager for World of Warcraft addon bundles.

    Create bundles, add dependencies from the Moxen registry, and
    package and publish your own.
    """
    configure_logging(verbose)

    # Commands resolve the bundle root from obj["directory"]
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["directory"] = directory


app.command(name="new")(new.new)
app.command(name="add")(add.add)
app.command(name="info")(info.info)
app.command(name="package")(package.package)
app.command(name="publish")(publish.publish)
app.command(name="register")(register.register)
app.command(name="recover")(recover.recover)
app.command(name="clean")(clean.clean)


if __name__ == "__main__":
    app()
