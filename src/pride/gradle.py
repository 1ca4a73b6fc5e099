"""
Gradle build introspection.

Reports the project topology of a Gradle build (root project plus every
sub-project path) by running Gradle against the module directory with an init
script that prints the project tree once settings are loaded. Gradle's own
output is forwarded to the logger: stdout at INFO and stderr at ERROR.

Usage:

    with GradleConnector(configuration) as connector:
        with connector.connect(module_dir) as connection:
            build = connection.model()
"""

import logging
import os
import pathlib
import tempfile
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Mapping

from pride import utils

LOG = utils.logger(__file__)
GRADLE_WRAPPER = "gradlew"
_PROJECT_MARKER = "__pride_project__"
_INIT_SCRIPT = f"""
gradle.projectsLoaded {{ g ->
    g.rootProject.allprojects {{ p ->
        println "{_PROJECT_MARKER}|${{p.name}}|${{p.path}}"
    }}
}}
"""


@dataclass(frozen=True)
class GradleProject:
    """
    A project inside a Gradle build.

    Attributes:
        name: Project name
        path: Gradle project path, ":" for the root project
    """

    name: str
    path: str

    @property
    def is_root(self) -> bool:
        return self.path == ":"


@dataclass(frozen=True)
class GradleBuild:
    """
    The topology of a Gradle build: its root project and all of its projects,
    the root included.
    """

    root_project: GradleProject
    projects: list[GradleProject] = field(default_factory=list)


class GradleConnection:
    """
    A single introspection session against one project directory.

    The session owns the Gradle process started by model(); close() releases it
    whether or not the model was read completely.
    """

    def __init__(self, connector: "GradleConnector", project_dir: pathlib.Path):
        self.connector = connector
        self.project_dir = project_dir
        self._lines: Iterator[str] | None = None

    def model(self) -> GradleBuild:
        """
        Run Gradle and collect the build topology.

        Raises:
            subprocess.CalledProcessError: If Gradle exits with a failure
            ValueError: If Gradle reported no projects
        """
        args = [
            self.connector.executable(self.project_dir),
            *self.connector.arguments,
            "--init-script",
            self.connector.init_script,
            "help",
        ]
        self._lines = utils.process_start(
            args,
            cwd=self.project_dir,
            stderr_log_level=logging.ERROR,
            log=LOG,
        )
        projects: list[GradleProject] = []
        for line in self._lines:
            if line.startswith(_PROJECT_MARKER + "|"):
                # Gradle paths never contain "|", project names may
                name, path = line[len(_PROJECT_MARKER) + 1 :].rsplit("|", 1)
                projects.append(GradleProject(name=name, path=path))
            elif line:
                LOG.info("%s", line)
        root_project = next((p for p in projects if p.is_root), None)
        if root_project is None:
            raise ValueError(f"No Gradle projects reported in {self.project_dir}")
        return GradleBuild(root_project=root_project, projects=projects)

    def close(self):
        if self._lines is not None:
            utils.run_catching(self._lines.close)
            self._lines = None

    def __enter__(self) -> "GradleConnection":
        return self

    def __exit__(self, *exc):
        self.close()


class GradleConnector:
    """
    Factory for introspection sessions, scoped to one regeneration run.

    Entering the connector writes the init script to a temporary file; exiting
    removes it. Connections may be opened from several threads at once since
    the connector holds no per-session state.
    """

    def __init__(self, configuration: Mapping):
        self.configuration = configuration
        self.init_script: pathlib.Path | None = None

    @property
    def arguments(self) -> list[str]:
        return list(self.configuration.get("gradle.arguments", None) or [])

    def executable(self, project_dir: pathlib.Path) -> str:
        """
        Prefer the project's Gradle wrapper, falling back to gradle.executable.
        """
        wrapper = project_dir / GRADLE_WRAPPER
        if wrapper.is_file() and os.access(wrapper, os.X_OK):
            return str(wrapper)
        executable = self.configuration.get("gradle.executable", None) or "gradle"
        resolved = utils.which(executable)
        return str(resolved) if resolved else executable

    def connect(self, project_dir: pathlib.Path) -> GradleConnection:
        if self.init_script is None:
            raise RuntimeError("Connector is not open")
        LOG.debug("Connecting to Gradle build in %s", project_dir)
        return GradleConnection(self, project_dir)

    def __enter__(self) -> "GradleConnector":
        LOG.info("Starting Gradle connector")
        fd, name = tempfile.mkstemp(prefix="pride-", suffix=".gradle")
        with os.fdopen(fd, "w") as f:
            f.write(_INIT_SCRIPT)
        self.init_script = pathlib.Path(name)
        return self

    def __exit__(self, *exc):
        if self.init_script is not None:
            self.init_script.unlink(missing_ok=True)
            self.init_script = None
