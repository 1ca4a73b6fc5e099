"""
Version control backends and the resolver that binds modules to them.

Each backend is identified by the type string persisted in the modules file
("git", "svn"). Backends only wrap the command line client configured under
vcs.<type>.executable; they perform checkouts and updates of module
directories and know nothing about the pride itself.
"""

import logging
import pathlib
from typing import Callable, Mapping

from pride import utils
from pride.errors import PrideException

LOG = utils.logger(__file__)


class Vcs:
    """
    A version control backend bound to a configuration.

    Subclasses set `type` and implement checkout and update.
    """

    type: str = ""

    def __init__(self, configuration: Mapping):
        self.configuration = configuration

    @property
    def executable(self) -> str:
        return self.configuration.get(f"vcs.{self.type}.executable", self.type)

    def checkout(self, repository: str, target_dir: pathlib.Path) -> None:
        raise NotImplementedError

    def update(self, target_dir: pathlib.Path) -> None:
        raise NotImplementedError

    def _run(self, *args, cwd: pathlib.Path | None = None) -> str:
        return utils.process_run(
            [self.executable, *args], cwd=cwd, stderr_log_level=logging.INFO
        )

    def __repr__(self):
        return f"{type(self).__name__}(type={self.type!r})"


class GitVcs(Vcs):
    type = "git"

    def checkout(self, repository: str, target_dir: pathlib.Path) -> None:
        LOG.info("Cloning %s into %s", repository, target_dir)
        self._run("clone", repository, target_dir)

    def update(self, target_dir: pathlib.Path) -> None:
        LOG.info("Updating %s", target_dir)
        self._run("pull", "--ff-only", cwd=target_dir)


class SvnVcs(Vcs):
    type = "svn"

    def checkout(self, repository: str, target_dir: pathlib.Path) -> None:
        LOG.info("Checking out %s into %s", repository, target_dir)
        self._run("checkout", repository, target_dir)

    def update(self, target_dir: pathlib.Path) -> None:
        LOG.info("Updating %s", target_dir)
        self._run("update", cwd=target_dir)


class VcsManager:
    """
    Resolves VCS type strings to backend instances.

    Backends are registered as factories taking the configuration. Instances
    are cached per type, so every module of the same type shares one backend.
    """

    def __init__(self, factories: Mapping[str, Callable[[Mapping], Vcs]] | None = None):
        self._factories: dict[str, Callable[[Mapping], Vcs]] = dict(
            factories
            if factories is not None
            else {GitVcs.type: GitVcs, SvnVcs.type: SvnVcs}
        )
        self._instances: dict[str, Vcs] = {}

    @property
    def types(self) -> list[str]:
        return sorted(self._factories)

    def register(self, vcs_type: str, factory: Callable[[Mapping], Vcs]):
        self._factories[vcs_type] = factory
        self._instances.pop(vcs_type, None)

    def get_vcs(self, vcs_type: str, configuration: Mapping) -> Vcs:
        if vcs_type not in self._instances:
            factory = self._factories.get(vcs_type, None)
            if factory is None:
                raise PrideException(f"No support for VCS type: {vcs_type}")
            self._instances[vcs_type] = factory(configuration)
        return self._instances[vcs_type]
