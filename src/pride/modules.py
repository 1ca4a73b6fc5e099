"""
The module registry of a pride.

Modules are persisted in a line oriented text file, one module per line in the
form "<vcs type>|<module name>". Blank lines and lines starting with "#" are
ignored. Lines without a "|" are legacy entries naming only the module; these
default to git and are rewritten in the typed form on the next save.
"""

import pathlib
import re
from dataclasses import dataclass
from typing import Callable, Iterable

from pride import utils
from pride.errors import InvalidModuleError, NotFoundError
from pride.vcs import Vcs

LOG = utils.logger(__file__)
GRADLE_BUILD_FILE = "build.gradle"
DEFAULT_VCS_TYPE = "git"
_MODULE_LINE_RE = re.compile(r"^(.*)\|(.*)$")


@dataclass(frozen=True)
class Module:
    """
    A version controlled module registered in a pride.

    Attributes:
        name: Module name, which is also its directory name under the pride root
        vcs: Backend handling the module's version control
    """

    name: str
    vcs: Vcs


def parse_line(line: str) -> tuple[str, str] | None:
    """
    Parse a modules file line into a (vcs type, module name) pair.

    Returns None for blank lines and comments. The type and the name are split
    at the last "|"; a line without one, or with an empty type, is a git module.
    """
    module_line = line.strip()
    if not module_line or module_line.startswith("#"):
        return None
    if m := _MODULE_LINE_RE.match(module_line):
        vcs_type = m.group(1).strip() or DEFAULT_VCS_TYPE
        module_name = m.group(2).strip()
    else:
        vcs_type = DEFAULT_VCS_TYPE
        module_name = module_line
    return vcs_type, module_name


def load(
    root_dir: pathlib.Path,
    modules_file: pathlib.Path,
    vcs_resolver: Callable[[str], Vcs],
) -> dict[str, Module]:
    """
    Load the registered modules of a pride.

    Args:
        root_dir: Pride root directory the module names are relative to
        modules_file: The modules file to read
        vcs_resolver: Resolves a VCS type string to a backend

    Returns:
        Modules keyed by name, sorted ascending by name. A name registered more
        than once resolves to its last entry.

    Raises:
        NotFoundError: If the modules file does not exist
        InvalidModuleError: If a module directory is missing or contains no build
    """
    if not modules_file.is_file():
        raise NotFoundError(f"Cannot find modules file at {modules_file}")
    modules: dict[str, Module] = {}
    for line in modules_file.read_text(encoding="utf-8").splitlines():
        parsed = parse_line(line)
        if parsed is None:
            continue
        vcs_type, module_name = parsed
        module_dir = root_dir / module_name
        if not module_dir.is_dir():
            raise InvalidModuleError(f'Module "{module_name}" is missing')
        if not is_valid_module_directory(module_dir):
            raise InvalidModuleError(f'No module found in "{module_dir}"')
        LOG.debug("Found %s module %s", vcs_type, module_name)
        modules[module_name] = Module(module_name, vcs_resolver(vcs_type))
    return dict(sorted(modules.items()))


def save(modules_file: pathlib.Path, modules: Iterable[Module]):
    """
    Rewrite the modules file with one "<vcs type>|<name>" line per module,
    ordered by name.
    """
    modules_file.unlink(missing_ok=True)
    lines = [
        f"{module.vcs.type}|{module.name}\n"
        for module in sorted(modules, key=lambda module: module.name)
    ]
    modules_file.write_text("".join(lines), encoding="utf-8")


def is_valid_module_directory(module_dir: pathlib.Path) -> bool:
    """
    Check that a directory can hold a module: its name must not start with "."
    and it must directly contain a build.gradle entry, even a dangling link.
    """
    build_file = module_dir / GRADLE_BUILD_FILE
    return not module_dir.name.startswith(".") and (
        build_file.is_symlink() or build_file.exists()
    )
