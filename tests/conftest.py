import pathlib

import pytest

from pride import pride as prides
from pride.gradle import GradleBuild, GradleProject
from pride.vcs import VcsManager


def gradle_build(root_name: str, *sub_paths: str) -> GradleBuild:
    root_project = GradleProject(name=root_name, path=":")
    projects = [root_project]
    for path in sub_paths:
        projects.append(GradleProject(name=path.rsplit(":", 1)[-1], path=path))
    return GradleBuild(root_project=root_project, projects=projects)


def make_module(root_dir: pathlib.Path, name: str) -> pathlib.Path:
    module_dir = root_dir / name
    module_dir.mkdir(parents=True, exist_ok=True)
    (module_dir / "build.gradle").write_text("// module build\n")
    return module_dir


def make_pride(root_dir: pathlib.Path, modules_text: str = "") -> pathlib.Path:
    config_dir = root_dir / ".pride"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "version").write_bytes(b"0\n")
    (config_dir / "modules").write_text(modules_text)
    return root_dir


class FakeConnection:
    def __init__(self, connector: "FakeConnector", module_dir: pathlib.Path):
        self.connector = connector
        self.module_dir = module_dir

    def model(self) -> GradleBuild:
        build = self.connector.builds[self.module_dir.name]
        if isinstance(build, Exception):
            raise build
        return build

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.connector.closed.append(self.module_dir.name)


class FakeConnector:
    """
    Stands in for GradleConnector; answers topology from a name -> build map.
    Calling the instance mimics the connector factory.
    """

    def __init__(self, builds: dict | None = None):
        self.builds = builds if builds is not None else {}
        self.opened: list[str] = []
        self.closed: list[str] = []
        self.sessions = 0
        self.configurations = []

    def __call__(self, configuration=None):
        self.configurations.append(configuration)
        return self

    def connect(self, module_dir: pathlib.Path) -> FakeConnection:
        self.opened.append(module_dir.name)
        return FakeConnection(self, module_dir)

    def __enter__(self):
        self.sessions += 1
        return self

    def __exit__(self, *exc):
        pass


@pytest.fixture
def vcs_manager() -> VcsManager:
    return VcsManager()


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def load_pride(vcs_manager, connector):
    def _load(root_dir: pathlib.Path) -> prides.Pride:
        return prides.Pride(root_dir, {}, vcs_manager, connector)

    return _load
