"""
Errors a fun command reports to the user. Click prints their message and exits with their exit code.
"""

import click


class UserException(click.ClickException):
    """
    Error surfaced to the user. ``wrapped_from`` names the library error it was raised for, when there is one
    """

    exit_code = 1

    def __init__(self, message, wrapped_from=None):
        super().__init__(message)
        self.wrapped_from = wrapped_from


class ConfigException(UserException):
    """
    The funconfig file is missing or unreadable
    """
