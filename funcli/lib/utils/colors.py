"""
Colors build progress messages logged by fun
"""

import logging
from enum import Enum

import click
from rich.logging import RichHandler
from rich.text import Text

from funcli.lib.utils.fun_logging import FUN_CLI_LOGGER_NAME


class Colors(str, Enum):
    SUCCESS = "green"
    FAILURE = "red"
    WARNING = "yellow"


class Colored:
    """
    Messages logged through a RichHandler are colored with rich markup, which the handler renders when the record
    carries ``extra=dict(markup=True)``. Any other handler gets ANSI escapes from click.
    """

    def __init__(self):
        self.rich_logging = any(
            isinstance(handler, RichHandler) for handler in logging.getLogger(FUN_CLI_LOGGER_NAME).handlers
        )

    def color_log(self, msg: str, color: Colors) -> str:
        if self.rich_logging:
            return Text(msg, style=color.value).markup
        return click.style(msg, fg=color.value)
