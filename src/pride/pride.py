"""
Pride workspace discovery and module lifecycle.

A pride is a directory holding several version controlled Gradle modules side
by side, plus a ".pride" configuration directory:

    <root>/.pride/version   "0\\n", marks the directory as a pride root
    <root>/.pride/modules   the module registry, see pride.modules
    <root>/build.gradle     generated
    <root>/settings.gradle  generated
    <root>/<module>/...     one directory per module

The Pride class loads the registry, exposes add/remove/lookup of modules and
regenerates the aggregate build through pride.generator.
"""

import os
import pathlib
from os import PathLike
from typing import Callable, ContextManager, Mapping

from pride import modules, utils
from pride.errors import InvalidStateError, NotFoundError
from pride.generator import AggregateBuildGenerator
from pride.gradle import GradleConnector
from pride.modules import Module
from pride.vcs import Vcs, VcsManager

LOG = utils.logger(__file__)
PRIDE_CONFIG_DIRECTORY = ".pride"
PRIDE_MODULES_FILE = "modules"
PRIDE_VERSION_FILE = "version"
PRIDE_VERSION = b"0\n"

ConnectorFactory = Callable[[Mapping], ContextManager]


def config_dir(root_dir: pathlib.Path) -> pathlib.Path:
    return root_dir / PRIDE_CONFIG_DIRECTORY


def contains_pride(directory: PathLike | str) -> bool:
    """
    Check whether a directory is the root of a pride of a supported version.

    The version file must hold exactly "0\\n"; a pride written by another
    version is not recognized.
    """
    version_file = config_dir(pathlib.Path(directory)) / PRIDE_VERSION_FILE
    result = version_file.is_file() and version_file.read_bytes() == PRIDE_VERSION
    LOG.debug("Directory %s contains a pride: %s", directory, result)
    return result


def lookup_pride(
    directory: PathLike | str,
    configuration: Mapping,
    vcs_manager: VcsManager,
    connector_factory: ConnectorFactory = GradleConnector,
) -> "Pride | None":
    """
    Find the pride containing a directory by walking up its ancestors.

    Returns:
        The nearest enclosing pride, or None if no ancestor is a pride root
    """
    current = pathlib.Path(os.path.abspath(directory))
    while True:
        if contains_pride(current):
            return Pride(current, configuration, vcs_manager, connector_factory)
        parent = current.parent
        if parent == current:
            return None
        current = parent


def get_pride(
    directory: PathLike | str,
    configuration: Mapping,
    vcs_manager: VcsManager,
    connector_factory: ConnectorFactory = GradleConnector,
) -> "Pride":
    """
    Like lookup_pride, but a missing pride is an error.

    Raises:
        NotFoundError: If no pride is found at or above the directory
    """
    pride = lookup_pride(directory, configuration, vcs_manager, connector_factory)
    if pride is None:
        raise NotFoundError(f"No pride found in {directory}")
    return pride


def create(
    directory: PathLike | str,
    configuration: Mapping,
    vcs_manager: VcsManager,
    connector_factory: ConnectorFactory = GradleConnector,
) -> "Pride":
    """
    Initialize a new, empty pride in a directory.

    Any existing configuration directory is replaced, so the previous module
    registry is lost. Module directories are left in place.
    """
    pride_dir = pathlib.Path(os.path.abspath(directory))
    LOG.info("Initializing %s", pride_dir)
    pride_dir.mkdir(parents=True, exist_ok=True)

    pride_config_dir = config_dir(pride_dir)
    utils.delete_path(pride_config_dir)
    pride_config_dir.mkdir(parents=True)
    (pride_config_dir / PRIDE_VERSION_FILE).write_bytes(PRIDE_VERSION)
    (pride_config_dir / PRIDE_MODULES_FILE).touch()

    pride = get_pride(pride_dir, configuration, vcs_manager, connector_factory)
    pride.reinitialize()
    return pride


class Pride:
    """
    A loaded pride: its root directory and registered modules.

    Module changes are kept in memory until save() is called, and are folded
    into the generated build files by reinitialize().
    """

    def __init__(
        self,
        root_dir: PathLike | str,
        configuration: Mapping,
        vcs_manager: VcsManager,
        connector_factory: ConnectorFactory = GradleConnector,
    ):
        """
        Load the pride rooted at root_dir.

        Raises:
            InvalidStateError: If root_dir has no configuration directory
            NotFoundError: If the modules file is missing
            InvalidModuleError: If a registered module directory is invalid
        """
        self.root_dir = pathlib.Path(os.path.abspath(root_dir))
        self.configuration = configuration
        self.vcs_manager = vcs_manager
        self.connector_factory = connector_factory
        self.config_dir = config_dir(self.root_dir)
        if not self.config_dir.is_dir():
            raise InvalidStateError(f'No pride in directory "{self.root_dir}"')
        self._modules: dict[str, Module] = modules.load(
            self.root_dir,
            self.modules_file,
            lambda vcs_type: vcs_manager.get_vcs(vcs_type, configuration),
        )

    @property
    def modules_file(self) -> pathlib.Path:
        return self.config_dir / PRIDE_MODULES_FILE

    @property
    def modules(self) -> tuple[Module, ...]:
        """Registered modules, ordered by name."""
        return tuple(self._modules[name] for name in sorted(self._modules))

    def reinitialize(self, max_workers: int | None = None):
        """
        Regenerate build.gradle and settings.gradle from the registered modules.

        Args:
            max_workers: Modules introspected concurrently; defaults to the
                gradle.max_workers setting

        Raises:
            GenerationError: If a module build could not be introspected
        """
        if max_workers is None:
            max_workers = self.configuration.get("gradle.max_workers", None) or 1
        LOG.info("Reinitializing %s", self.root_dir)
        generator = AggregateBuildGenerator(
            self.root_dir,
            lambda: self.connector_factory(self.configuration),
            max_workers=max_workers,
        )
        generator.generate(self.root_dir / module.name for module in self.modules)

    def add_module(self, name: str, vcs: Vcs) -> Module:
        """
        Register a module, replacing any module registered under the same name.
        """
        module = Module(name, vcs)
        self._modules[name] = module
        return module

    def remove_module(self, name: str):
        """
        Unregister a module and delete its directory (or the link to it).

        Raises:
            NotFoundError: If no module is registered under the name
        """
        module_dir = self.get_module_directory(name)
        LOG.info("Removing %s from %s", name, module_dir)
        del self._modules[name]
        utils.delete_path(module_dir)

    def has_module(self, name: str) -> bool:
        return name in self._modules

    def get_module(self, name: str) -> Module:
        if name not in self._modules:
            raise NotFoundError(f"No module with name {name}")
        return self._modules[name]

    def get_module_directory(self, name: str) -> pathlib.Path:
        module = self.get_module(name)
        return self.root_dir / module.name

    def save(self):
        modules.save(self.modules_file, self._modules.values())

    def __repr__(self):
        return f"{Pride.__name__}(root_dir={str(self.root_dir)!r} modules={list(self._modules)!r})"
