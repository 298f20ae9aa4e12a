"""
Exceptions to be used by funconfig.py
"""

from funcli.commands.exceptions import UserException


class FileParseException(Exception):
    """Exception when the configuration file is not valid TOML."""


class FunConfigFileReadException(UserException):
    """Exception when a `funconfig` file is read incorrectly."""
