"""
Logging setup of the fun CLI
"""

import logging
import os
import sys

from rich.console import Console
from rich.logging import RichHandler

FUN_CLI_FORMATTER = logging.Formatter("%(message)s")
FUN_CLI_FORMATTER_WITH_TIMESTAMP = logging.Formatter("%(asctime)s | %(message)s")

FUN_CLI_LOGGER_NAME = "funcli"
LAMBDA_BULDERS_LOGGER_NAME = "aws_lambda_builders"

# Setting any of them turns colored logs off
NO_COLOR_ENV_VARS = ("NO_COLOR", "FUN_CLI_NO_COLOR")


def _colors_supported() -> bool:
    if not sys.stderr.isatty() or os.getenv("TERM") == "dumb":
        return False

    return not any(os.getenv(name) for name in NO_COLOR_ENV_VARS)


class FunCliLogger:
    @staticmethod
    def configure_logger(logger, formatter, level):
        """
        Sets the level of ``logger`` and the formatter of its first handler, records are not propagated any further.

        A logger without handler gets one writing to stderr: a RichHandler when the terminal shows colors, a plain
        StreamHandler otherwise.
        """
        if not logger.handlers:
            if _colors_supported():
                handler = RichHandler(console=Console(stderr=True), show_time=False, show_path=False, show_level=False)
            else:
                handler = logging.StreamHandler()
            logger.addHandler(handler)

        handler = logger.handlers[0]
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(formatter)

        logger.setLevel(level)
        logger.propagate = False

    @staticmethod
    def configure_cli_loggers(formatter, level):
        """
        Configures the loggers whose records make up the output of a build, fun's own and aws-lambda-builders'
        """
        for logger_name in (FUN_CLI_LOGGER_NAME, LAMBDA_BULDERS_LOGGER_NAME):
            FunCliLogger.configure_logger(logging.getLogger(logger_name), formatter, level)
