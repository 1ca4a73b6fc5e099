"""
Error kinds raised by pride.

Every error is fatal to the operation that raised it. The command line
reports PrideException subclasses to the user and exits with a failure status.
"""

import pathlib


class PrideException(Exception):
    """Base class for all pride errors."""


class NotFoundError(PrideException):
    """A pride, a modules file or a registered module could not be found."""


class InvalidStateError(PrideException):
    """The pride configuration directory is missing or is not a directory."""


class InvalidModuleError(PrideException):
    """A registered module directory is missing or does not contain a build."""


class GenerationError(PrideException):
    """
    The build introspection of a module failed.

    Attributes:
        module_dir: Directory of the module that could not be introspected
    """

    def __init__(self, module_dir: pathlib.Path, cause: BaseException | None = None):
        message = f"Could not parse module in {module_dir}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.module_dir = module_dir
        self.__cause__ = cause
