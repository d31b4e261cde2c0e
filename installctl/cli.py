import logging
import sys

import typer

from installctl import __version__
from installctl.commands import run
from installctl.logging import setup_logging

app = typer.Typer(help="Post-bootstrap installation controller")

# Global debug flag
debug_mode = False

app.command("run")(run.run)


@app.command("version")
def version():
    """Print the installctl version."""
    typer.echo(__version__)


# Global options callback
@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """installctl - finish a cluster installation after bootstrap."""
    global debug_mode
    debug_mode = debug
    setup_logging(debug)
    if debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Debug mode enabled")


if __name__ == "__main__":
    try:
        app()
    except Exception as e:
        if debug_mode:
            import traceback
            logging.error(f"Unhandled exception: {e}\n{traceback.format_exc()}")
        else:
            logging.error(f"Error: {e}")
        sys.exit(1)
