"""
Command group of the fun CLI
"""

import importlib
import logging
from typing import List, Optional

import click

logger = logging.getLogger(__name__)

# Packages of the fun commands, listed in this order by --help
_FUN_CLI_COMMAND_PACKAGES = [
    "funcli.commands.build",
    "funcli.commands.install",
]


class BaseCommand(click.Group):
    """
    Group whose commands are imported only when invoked. Each command lives in its own package, named after the
    command, which exposes the click command as ``cli``.
    """

    def __init__(self, *args, cmd_packages: Optional[List[str]] = None, **kwargs):
        kwargs["context_settings"] = dict(help_option_names=["-h", "--help"])
        super().__init__(*args, **kwargs)

        self._command_packages = {
            package.rsplit(".", 1)[-1]: package for package in cmd_packages or _FUN_CLI_COMMAND_PACKAGES
        }

    def list_commands(self, ctx):
        return list(self._command_packages)

    def get_command(self, ctx, cmd_name):
        package = self._command_packages.get(cmd_name)
        if not package:
            logger.error("Command %s not available", cmd_name)
            return None

        try:
            command = getattr(importlib.import_module(package), "cli", None)
        except ImportError:
            logger.exception("Unable to import '%s' for command %s", package, cmd_name)
            return None

        if command is None:
            logger.error("Command %s is not configured correctly, %s has no 'cli' attribute", cmd_name, package)

        return command
