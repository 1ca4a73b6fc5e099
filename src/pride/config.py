import os
import pathlib
from copy import deepcopy
from typing import Any

import tomlkit
from benedict.dicts import benedict
from mergedeep import merge

from pride import utils

"""
Configuration loading for pride.

Settings are read from a TOML file (PRIDE_CONFIG, or ~/.prideconfig.toml) and
layered over built-in defaults. The result is a benedict so callers can use
dotted key paths such as "gradle.executable".
"""

LOG = utils.logger(__file__)
CONFIG_FILE_ENV = "PRIDE_CONFIG"
CONFIG_FILE_NAME = ".prideconfig.toml"

DEFAULTS: dict[str, Any] = {
    "gradle": {
        "executable": "gradle",
        "arguments": ["-q"],
        "max_workers": 1,
    },
    "vcs": {
        "git": {"executable": "git"},
        "svn": {"executable": "svn"},
    },
}


def config_file() -> pathlib.Path:
    """
    Return the configuration file path, honoring the PRIDE_CONFIG override.
    """
    if path := os.getenv(CONFIG_FILE_ENV, "").strip():
        return pathlib.Path(path).expanduser()
    return pathlib.Path.home() / CONFIG_FILE_NAME


def load(path: pathlib.Path | None = None, overrides: dict | None = None) -> benedict:
    """
    Load the configuration, merging the file and any overrides over DEFAULTS.

    A missing file is not an error; the defaults are used alone.
    """
    path = path or config_file()
    data = deepcopy(DEFAULTS)
    if path.is_file():
        LOG.debug("Reading configuration: %s", path)
        with path.open("rb") as f:
            merge(data, tomlkit.load(f).unwrap())
    if overrides:
        merge(data, overrides)
    return benedict(data)


def set_value(key: str, value: Any, path: pathlib.Path | None = None) -> pathlib.Path:
    """
    Persist a single dotted key into the configuration file.

    String values are parsed as TOML literals when possible, so "4" becomes an
    integer and "['-q', '--offline']" becomes an array; anything else is
    stored as a plain string.
    """
    path = path or config_file()
    if path.is_file():
        with path.open("rb") as f:
            doc = tomlkit.load(f)
    else:
        doc = tomlkit.document()
    if isinstance(value, str):
        parsed = utils.run_catching(tomlkit.value, value)
        value = parsed if parsed is not None else value
    keys = key.split(".")
    table = doc
    for k in keys[:-1]:
        if k not in table:
            table[k] = tomlkit.table()
        table = table[k]
    table[keys[-1]] = value
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(tomlkit.dumps(doc))
    LOG.debug("Configuration updated - key:%s path:%s", key, path)
    return path
