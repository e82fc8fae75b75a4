"""
Compiler Fleet CLI entry point.
"""

import logging
from pathlib import Path
from typing import Tuple

import click
from rich.console import Console

from .. import __version__
from ..config import CompilerProperties, PropertyRepository, build_hierarchy
from .commands.discover import discover
from .commands.serve import serve

console = Console()


# ------------------------------------------------------------
# CLI Context (Dependency Injection + Global Options)
# ------------------------------------------------------------

class CLIContext:
    def __init__(
        self,
        root_dir: Path,
        envs: Tuple[str, ...],
        language: str,
        prop_debug: bool,
        verbose: bool,
    ):
        self.language = language
        self.verbose = verbose

        logging.basicConfig(
            level=logging.DEBUG if (verbose or prop_debug) else logging.INFO,
            format="%(asctime)s | %(levelname)s | %(message)s",
        )

        hierarchy = build_hierarchy(envs, language)
        self.repository = PropertyRepository(
            Path(root_dir) / "config",
            hierarchy,
            debug=prop_debug,
        )

    @property
    def props(self) -> CompilerProperties:
        return self.repository.compiler_props(self.language)


@click.group()
@click.version_option(version=__version__, prog_name="compiler-fleet")
@click.option(
    "--root-dir",
    default="./etc",
    type=click.Path(file_okay=False),
    help="Directory holding config/<group>.<level>.yaml",
)
@click.option("--env", "envs", multiple=True, default=("dev",), help="Environment level(s), lowest first")
@click.option("--language", default="C++", help="Language whose compilers are discovered")
@click.option("--prop-debug", is_flag=True, help="Log every property lookup")
@click.option("--verbose", is_flag=True, help="Enable verbose debugging output")
@click.pass_context
def cli(ctx, root_dir, envs, language, prop_debug, verbose):
    """
    Compiler Fleet - discover local and remote compilers at startup.
    """
    ctx.obj = CLIContext(Path(root_dir), tuple(envs), language, prop_debug, verbose)


cli.add_command(discover)
cli.add_command(serve)


if __name__ == "__main__":
    cli()
