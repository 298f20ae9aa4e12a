"""Build exceptions"""

from funcli.commands.exceptions import UserException


class InvalidBaseDirException(UserException):
    """
    Value provided to --base-dir is invalid
    """
