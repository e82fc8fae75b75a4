"""
Serve command: discover once, then publish the registry over HTTP.
"""

import socket

import click
from aiohttp import web
from rich.console import Console

from ...core.errors import FleetError, InternalError
from ...discovery.assembler import find_compilers
from ...server.app import create_app
from .discover import handle_startup_error

console = Console()


@click.command()
@click.option("--host", default=None, help="Interface to bind (default: this host's name)")
@click.option("--port", default=10240, type=int, show_default=True)
@click.pass_obj
def serve(cli_ctx, host, port):
    """Discover compilers, then serve /api/compilers."""
    props = cli_ctx.props

    try:
        report = find_compilers(props)
    except FleetError as e:
        handle_startup_error(e)
        return
    except Exception as e:
        handle_startup_error(InternalError(f"Unexpected error: {e}", stage="discovery"))
        return

    hostname = host or socket.gethostname()
    app = create_app(report.registry, props, cli_ctx.language)

    console.print("=======================================")
    console.print(f"Listening on http://{hostname}:{port}/")
    console.print("=======================================")
    web.run_app(app, host=hostname, port=port, print=None)
