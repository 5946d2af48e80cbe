import logging
import os
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from gnomod.config import MANIFEST_FILENAME
from gnomod.core.imports import format_mod_why_stanzas, get_import_to_files_map
from gnomod.core.manifest import ManifestFile, create_manifest_file, read_manifest
from gnomod.core.pkgs import list_pkgs
from gnomod.core.resolve import plan_downloads
from gnomod.errors import ErrorList, InvalidVersionError, ManifestError, ModulePathError
from gnomod.fetch import LocalCacheSource

logger = logging.getLogger(__name__)

mod_app = typer.Typer(help="Manage gno.mod manifests.", no_args_is_help=True)
console = Console()
err_console = Console(stderr=True)


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]{escape(message)}[/red]", highlight=False, soft_wrap=True)
    return typer.Exit(1)


def _read_cwd_manifest() -> tuple[Path, ManifestFile]:
    path = Path.cwd() / MANIFEST_FILENAME
    if not path.is_file():
        raise _fail(f"{MANIFEST_FILENAME} not found")
    try:
        return path, read_manifest(path)
    except ErrorList as e:
        raise _fail(f"parse: {e}") from None


@mod_app.command("init")
def init(
    module_path: Annotated[str | None, typer.Argument(help="Module path; inferred from the package clause if omitted.")] = None,
) -> None:
    """Create a gno.mod in the current directory."""
    try:
        path = create_manifest_file(Path.cwd(), module_path or "")
    except (FileExistsError, ValueError) as e:
        raise _fail(f"create {MANIFEST_FILENAME} file: {e}") from None
    console.print(f"[green]Created[/green] {path.name}")


def _tidy_once(wd: Path, pkg_dir: Path, verbose: bool) -> None:
    fname = pkg_dir / MANIFEST_FILENAME
    if verbose:
        err_console.print(os.path.relpath(fname, wd), markup=False, highlight=False, soft_wrap=True)
    manifest = read_manifest(fname)
    manifest.write(fname)


@mod_app.command("tidy")
def tidy(
    verbose: Annotated[bool, typer.Option("-v", "--verbose", help="Verbose output when running.")] = False,
    recursive: Annotated[bool, typer.Option(help="Walk subdirectories for gno.mod files.")] = False,
) -> None:
    """Reformat gno.mod files in canonical layout."""
    wd = Path.cwd()
    dirs = [wd]
    if recursive:
        try:
            dirs = [Path(pkg.dir) for pkg in list_pkgs(wd)]
        except (ErrorList, ManifestError) as e:
            raise _fail(str(e)) from None

    failed = False
    for pkg_dir in dirs:
        try:
            _tidy_once(wd, pkg_dir, verbose)
        except (ErrorList, FileNotFoundError) as e:
            err_console.print(f"[red]{escape(str(e))}[/red]", highlight=False, soft_wrap=True)
            failed = True
    if failed:
        raise typer.Exit(1)


@mod_app.command("why")
def why(
    packages: Annotated[list[str], typer.Argument(help="Package paths to explain.")],
) -> None:
    """Explain which files of the current package import the given packages."""
    _, manifest = _read_cwd_manifest()
    import_map = get_import_to_files_map(Path.cwd())
    out = format_mod_why_stanzas(manifest.module_path, packages, import_map)
    console.print(out, end="", markup=False, highlight=False, soft_wrap=True)


@mod_app.command("download")
def download(
    cache_dir: Annotated[Path | None, typer.Option(help="Module cache to read dependency manifests from.")] = None,
    verbose: Annotated[bool, typer.Option("-v", "--verbose", help="Log resolution decisions.")] = False,
) -> None:
    """Plan the download of every module imported by the current package."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    _, manifest = _read_cwd_manifest()
    manifest.sanitize()
    try:
        manifest.validate()
    except ManifestError as e:
        raise _fail(f"validate: {e}") from None

    try:
        plan = plan_downloads(manifest, Path.cwd(), LocalCacheSource(cache_dir))
    except (InvalidVersionError, ModulePathError) as e:
        raise _fail(f"resolve: {e}") from None

    for mod in plan.modules:
        console.print(f"fetch {escape(str(mod))}", highlight=False, soft_wrap=True)
    for mod in plan.local:
        console.print(f"local {escape(str(mod))}", highlight=False, soft_wrap=True)
    for mod in plan.excluded:
        console.print(f"[yellow]excluded[/yellow] {escape(str(mod))}", highlight=False, soft_wrap=True)
    if plan.errors:
        for err in plan.errors:
            err_console.print(f"[red]{escape(str(err))}[/red]", highlight=False, soft_wrap=True)
        raise typer.Exit(1)
