import typer

from boxshell.logging import configure_logging
from boxshell.server.cli import server_app


app = typer.Typer(help="Boxshell sandbox server CLI")
app.add_typer(server_app, name="server")


@app.callback()
def main_callback() -> None:
    """
    Boxshell: container sandboxes with an interactive shell.
    """
    configure_logging()
