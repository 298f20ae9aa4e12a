"""
Object shared by the fun command group and its commands
"""

import logging

from funcli.lib.utils.fun_logging import FUN_CLI_FORMATTER_WITH_TIMESTAMP, FunCliLogger


class Context:
    """
    Holds the options of the ``fun`` group that commands depend on. Click creates it once per invocation and
    hands it to every command decorated with ``pass_context``.
    """

    def __init__(self):
        self._debug = False

    @property
    def debug(self):
        return self._debug

    @debug.setter
    def debug(self, value):
        """
        Switching debug on makes both fun and aws-lambda-builders log at DEBUG level, with timestamps
        """
        self._debug = value

        if self._debug:
            FunCliLogger.configure_cli_loggers(FUN_CLI_FORMATTER_WITH_TIMESTAMP, logging.DEBUG)
