"""
Generation of the aggregate Gradle build of a pride.

The pride root gets two generated files:
- build.gradle: a warning banner followed by the packaged template
- settings.gradle: a warning banner followed by the includes of every module

For each module the introspected topology is turned into settings lines. The
module's root project is included under its own name and bound to the module
directory; every other project is included under the root project's name
followed by its Gradle path, e.g. "lib:core".
"""

import pathlib
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, ContextManager, Iterable, TextIO

from pride import modules, utils
from pride.errors import GenerationError
from pride.gradle import GradleBuild

LOG = utils.logger(__file__)
GRADLE_SETTINGS_FILE = "settings.gradle"
GRADLE_BUILD_FILE = modules.GRADLE_BUILD_FILE
BUILD_TEMPLATE = pathlib.Path(__file__).parent / "templates" / GRADLE_BUILD_FILE
DO_NOT_MODIFY_WARNING = """//
// DO NOT MODIFY -- This file is generated by Pride, and will be
// overwritten whenever the pride itself is changed.
//
"""


@dataclass(frozen=True)
class ModuleSettings:
    """
    Outcome of generating the settings of one module: either the settings text
    or the error that prevented it.
    """

    module_dir: pathlib.Path
    text: str | None = None
    error: GenerationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def settings_text(root_dir: pathlib.Path, module_dir: pathlib.Path, build: GradleBuild) -> str:
    """
    Render the settings.gradle fragment of one module.
    """
    relative_path = module_dir.relative_to(root_dir).as_posix() + "/"
    root_name = build.root_project.name
    lines = [f"\n// Settings from project in directory /{relative_path}\n\n"]
    for project in build.projects:
        if project == build.root_project:
            lines.append(f"include '{root_name}'\n")
            lines.append(
                f"project(':{root_name}').projectDir = file('{module_dir.name}')\n"
            )
        else:
            lines.append(f"include '{root_name}{project.path}'\n")
    return "".join(lines)


class AggregateBuildGenerator:
    """
    Rewrites the aggregate build files of a pride from its module directories.

    Args:
        root_dir: Pride root directory receiving the generated files
        connector_factory: Opens an introspection session scope; must return a
            context manager whose value provides connect(module_dir). Opened
            once per run, or once per module when max_workers > 1
        max_workers: Number of modules introspected concurrently
    """

    def __init__(
        self,
        root_dir: pathlib.Path,
        connector_factory: Callable[[], ContextManager],
        max_workers: int = 1,
    ):
        self.root_dir = root_dir
        self.connector_factory = connector_factory
        self.max_workers = max(1, int(max_workers or 1))

    @property
    def build_file(self) -> pathlib.Path:
        return self.root_dir / GRADLE_BUILD_FILE

    @property
    def settings_file(self) -> pathlib.Path:
        return self.root_dir / GRADLE_SETTINGS_FILE

    def generate(self, module_dirs: Iterable[pathlib.Path]):
        """
        Regenerate build.gradle and settings.gradle.

        Module directories that are not valid module directories are skipped.
        The first module that fails introspection aborts the run; settings of
        the modules before it have already been written at that point.

        Raises:
            GenerationError: If a module could not be introspected
        """
        self.build_file.write_text(
            DO_NOT_MODIFY_WARNING + BUILD_TEMPLATE.read_text(encoding="utf-8"),
            encoding="utf-8",
        )
        self.settings_file.write_text(DO_NOT_MODIFY_WARNING, encoding="utf-8")

        valid_dirs = []
        for module_dir in module_dirs:
            if modules.is_valid_module_directory(module_dir):
                valid_dirs.append(module_dir)
            else:
                LOG.debug("Skipping invalid module directory: %s", module_dir)

        with self.settings_file.open("a", encoding="utf-8") as settings:
            if self.max_workers == 1 or len(valid_dirs) <= 1:
                with self.connector_factory() as connector:
                    self._append_settings(
                        settings,
                        (self.module_settings(connector, d) for d in valid_dirs),
                    )
            else:
                with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                    # map keeps the module order regardless of completion order
                    self._append_settings(
                        settings, executor.map(self._connected_module_settings, valid_dirs)
                    )
        LOG.debug("Generated %s for %s modules", self.settings_file, len(valid_dirs))

    def module_settings(self, connector, module_dir: pathlib.Path) -> ModuleSettings:
        """
        Introspect one module and render its settings, capturing any failure.
        """
        try:
            with connector.connect(module_dir) as connection:
                build = connection.model()
        except Exception as e:
            LOG.debug("Module introspection failed - dir:%s error:%s", module_dir, e)
            error = GenerationError(module_dir, e)
            return ModuleSettings(module_dir=module_dir, error=error)
        text = settings_text(self.root_dir, module_dir, build)
        return ModuleSettings(module_dir=module_dir, text=text)

    def _connected_module_settings(self, module_dir: pathlib.Path) -> ModuleSettings:
        # Worker threads never share a connector
        with self.connector_factory() as connector:
            return self.module_settings(connector, module_dir)

    @staticmethod
    def _append_settings(settings: TextIO, results: Iterable[ModuleSettings]):
        for result in results:
            if not result.ok:
                raise result.error
            settings.write(result.text)
