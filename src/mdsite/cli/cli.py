"""CLI entrypoint: Typer app definition and command registration"""

import typer

from mdsite.cli.commands import build_cmd, check_cmd, render_cmd


app = typer.Typer(name="mdsite", no_args_is_help=True, help="Render front-matter markdown posts to HTML pages")

app.command(name="build")(build_cmd)
app.command(name="check")(check_cmd)
app.command(name="render")(render_cmd)
