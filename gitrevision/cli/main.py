"""git revision CLI"""

import asyncio
import re
import sys
from typing import Optional

import click
from git.exc import GitError

from gitrevision import __version__
from gitrevision.cli.app import CliApp, format_fields
from gitrevision.cli.utils.logging import logger
from gitrevision.config import load_defaults
from gitrevision.versioning import (
    DEFAULT_REV,
    GitVersionerConfig,
    VersioningError,
    create_versioner,
)

from .debug import add_debug_option

INTRO = (
    "Welcome to git revision! This tool helps to generate useful version numbers "
    "and revision codes for your project. Semantic versioning (i.e. \"1.4.2\") is "
    "nice for humans but hard to derive automatically. git revision counts the "
    "commits on the base branch and adds a time component, so every build gets "
    "an ever increasing number without any manual tagging."
)

_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_\-/]")


def sanitize_name(name: Optional[str]) -> Optional[str]:
    """Remove characters not allowed in a revision name, None if nothing is left."""
    if name is None:
        return None
    cleaned = _INVALID_NAME_CHARS.sub("", name)
    return cleaned or None


def render_help(ctx: click.Context) -> str:
    return f"{INTRO}\n\n{ctx.get_help()}"


def _help_callback(ctx, param, value):
    if not value or ctx.resilient_parsing:
        return
    click.echo(render_help(ctx))
    ctx.exit()


@click.command(context_settings={"max_content_width": 100})
@click.argument("revision", default=DEFAULT_REV, required=False)
@click.option(
    "--help",
    "-h",
    is_flag=True,
    expose_value=False,
    is_eager=True,
    callback=_help_callback,
    help="Print this usage information.",
)
@click.version_option(
    __version__,
    "--version",
    "-v",
    prog_name="git revision",
    message="%(prog)s, Version %(version)s",
    help="Shows the version information of git revision.",
)
@click.option(
    "-C",
    "--context",
    "context",
    type=click.Path(file_okay=False),
    default="",
    help="Run as if git was started in <path> instead of the current working directory.",
)
@click.option(
    "-b",
    "--baseBranch",
    "base_branch",
    default=None,
    help="The base branch where most of the development happens. Only on the "
    "baseBranch the revision can become only digits. (defaults to \"master\")",
)
@click.option(
    "-y",
    "--yearFactor",
    "year_factor",
    type=click.IntRange(min=0),
    default=None,
    help="Revision increment count per year. (defaults to 1000)",
)
@click.option(
    "-d",
    "--stopDebounce",
    "stop_debounce",
    type=click.IntRange(min=0),
    default=None,
    help="Time between two commits (in hours) which are further apart than this "
    "are not included into the time component. (defaults to 48)",
)
@click.option(
    "-n",
    "--name",
    "name",
    default=None,
    help="A human readable name of the revision ('73_<name>+21_996321c'). Allowed "
    "characters: letters, digits, underscore, dash and slash. Invalid characters "
    "are removed.",
)
@click.option(
    "-f",
    "--format",
    "output_format",
    default=None,
    help="Print only this template. Placeholders: {revision}, {versionName}, "
    "{sha1}, {branch}, {baseBranch}.",
)
@click.option(
    "--full",
    is_flag=True,
    default=False,
    help="Shows full information about the revision and extracted information.",
)
@click.pass_context
def cli(
    ctx,
    revision,
    context,
    base_branch,
    year_factor,
    stop_debounce,
    name,
    output_format,
    full,
):
    """Calculate a revision number and version name from the git history.

    REVISION is the commit to version (defaults to HEAD).
    """
    if revision == "help":
        click.echo(render_help(ctx))
        ctx.exit()

    if output_format is not None:
        try:
            format_fields(output_format)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="'--format'")

    try:
        defaults = load_defaults()
        config = GitVersionerConfig(
            base_branch=base_branch or defaults["baseBranch"],
            repo_path=context,
            year_factor=(
                year_factor if year_factor is not None else defaults["yearFactor"]
            ),
            stop_debounce=(
                stop_debounce
                if stop_debounce is not None
                else defaults["stopDebounce"]
            ),
            name=sanitize_name(name),
            rev=revision,
        )
    except VersioningError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    logger.debug(f"Using configuration {config}")
    app = CliApp(create_versioner(config), logger)

    if full:
        job = app.print_full()
    elif output_format is not None:
        job = app.print_format(output_format)
    else:
        job = app.print_revision()

    try:
        asyncio.run(job)
    except (VersioningError, GitError, OSError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


add_debug_option(cli)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
