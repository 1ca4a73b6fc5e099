"""
Main entry point for the pride CLI.

The CLI manages a pride, a directory aggregating several version controlled
Gradle modules into one build. It provides commands for:
- Initializing a pride
- Adding, removing, listing and updating modules
- Regenerating the aggregate build files
- Reading and writing configuration values
"""

import pathlib
import sys
from typing import Annotated

import typer

from pride import config, modules, utils
from pride.errors import InvalidModuleError, PrideException
from pride.gradle import GradleConnector
from pride.pride import Pride, contains_pride, create, get_pride
from pride.vcs import VcsManager

LOG = utils.logger(__file__)

_DIRECTORY_OPTION = Annotated[
    pathlib.Path,
    typer.Option(
        "--directory",
        "-d",
        file_okay=False,
        help="Directory inside the pride to operate on. Defaults to the current directory.",
    ),
]

app = typer.Typer(help="Manage a pride of Gradle modules.")


def _configuration(ctx: typer.Context):
    return utils.command_meta_cache(ctx, "configuration", config.load)


def _vcs_manager(ctx: typer.Context) -> VcsManager:
    return utils.command_meta_cache(ctx, "vcs_manager", VcsManager)


def _pride(ctx: typer.Context, directory: pathlib.Path) -> Pride:
    return get_pride(
        directory, _configuration(ctx), _vcs_manager(ctx), GradleConnector
    )


@app.command(name="init")
def init(
    ctx: typer.Context,
    directory: Annotated[
        pathlib.Path,
        typer.Argument(file_okay=False, help="Directory to initialize the pride in."),
    ] = pathlib.Path("."),
    force: Annotated[
        bool,
        typer.Option("--force", help="Reinitialize an existing pride, dropping its modules."),
    ] = False,
):
    """
    Initialize a new pride.

    Creates the .pride configuration directory with an empty module registry
    and generates the aggregate build files.
    """
    if contains_pride(directory) and not force:
        raise PrideException(f"A pride already exists in {directory.absolute()}")
    create(directory, _configuration(ctx), _vcs_manager(ctx), GradleConnector)


@app.command(name="add")
def add(
    ctx: typer.Context,
    name: Annotated[
        str, typer.Argument(help="Module name, also its directory under the pride root.")
    ],
    repository: Annotated[
        str | None,
        typer.Option(
            "--repository",
            "-r",
            help="Repository to check the module out from when its directory does not exist.",
        ),
    ] = None,
    vcs_type: Annotated[
        str, typer.Option("--vcs", help="Version control type of the module.")
    ] = modules.DEFAULT_VCS_TYPE,
    directory: _DIRECTORY_OPTION = pathlib.Path("."),
):
    """
    Add a module to the pride.
    """
    pride = _pride(ctx, directory)
    vcs = _vcs_manager(ctx).get_vcs(vcs_type, _configuration(ctx))
    module_dir = pride.root_dir / name
    if not module_dir.exists():
        if not repository:
            raise InvalidModuleError(
                f'Module "{name}" is missing and no repository was given'
            )
        vcs.checkout(repository, module_dir)
    if not modules.is_valid_module_directory(module_dir):
        raise InvalidModuleError(f'No module found in "{module_dir}"')
    if pride.has_module(name):
        LOG.warning("Replacing module %s", name)
    pride.add_module(name, vcs)
    pride.save()
    pride.reinitialize()
    LOG.info("Added %s module %s", vcs.type, name)


@app.command(name="remove")
def remove(
    ctx: typer.Context,
    names: Annotated[list[str], typer.Argument(help="Modules to remove.")],
    directory: _DIRECTORY_OPTION = pathlib.Path("."),
):
    """
    Remove modules from the pride and delete their directories.
    """
    pride = _pride(ctx, directory)
    # Validate every name before deleting anything
    for name in names:
        pride.get_module(name)
    for name in names:
        pride.remove_module(name)
    pride.save()
    pride.reinitialize()


@app.command(name="list")
def list_modules(
    ctx: typer.Context,
    directory: _DIRECTORY_OPTION = pathlib.Path("."),
):
    """
    List the modules of the pride as "<vcs type>|<name>" lines.
    """
    for module in _pride(ctx, directory).modules:
        typer.echo(f"{module.vcs.type}|{module.name}")


@app.command(name="update")
def update(
    ctx: typer.Context,
    names: Annotated[
        list[str] | None,
        typer.Argument(help="Modules to update. Defaults to all modules."),
    ] = None,
    directory: _DIRECTORY_OPTION = pathlib.Path("."),
):
    """
    Update module checkouts from their repositories.
    """
    pride = _pride(ctx, directory)
    selected = [pride.get_module(name) for name in names] if names else pride.modules
    for module in selected:
        module.vcs.update(pride.get_module_directory(module.name))


@app.command(name="reinit")
def reinit(
    ctx: typer.Context,
    max_workers: Annotated[
        int | None,
        typer.Option(
            "--max-workers",
            min=1,
            help="Modules introspected concurrently. Defaults to gradle.max_workers.",
        ),
    ] = None,
    directory: _DIRECTORY_OPTION = pathlib.Path("."),
):
    """
    Regenerate build.gradle and settings.gradle from the registered modules.
    """
    _pride(ctx, directory).reinitialize(max_workers=max_workers)


@app.command(name="config")
def config_value(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Dotted key, e.g. gradle.executable.")],
    value: Annotated[
        str | None, typer.Argument(help="New value. Prints the current value if omitted.")
    ] = None,
):
    """
    Read or write a configuration value.
    """
    if value is None:
        current = _configuration(ctx).get(key, None)
        if current is None:
            raise PrideException(f"No configuration value for {key}")
        typer.echo(current)
    else:
        path = config.set_value(key, value)
        LOG.info("Set %s in %s", key, path)


def main():
    try:
        app()
    except PrideException as e:
        LOG.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
