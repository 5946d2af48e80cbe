import typer

from gnomod.cli.mod import mod_app

app = typer.Typer(
    name="gno",
    help="Gno module tooling: manage gno.mod manifests and their dependencies.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.add_typer(mod_app, name="mod")


def main() -> None:
    app()
