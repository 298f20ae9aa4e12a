"""
Entry point of the fun CLI
"""

import functools
import logging

import click

from funcli import __version__
from funcli.cli.command import BaseCommand
from funcli.cli.context import Context
from funcli.cli.options import debug_option
from funcli.lib.utils.fun_logging import FUN_CLI_FORMATTER, FunCliLogger

LOG = logging.getLogger(__name__)

_CONFIG_PARAMS = ("config_file", "config_env")

pass_context = click.make_pass_decorator(Context)


def common_options(f):
    """
    Options every fun command accepts, currently --debug
    """
    return debug_option(f)


def print_cmdline_args(func):
    """
    Logs, at debug level, the options a command runs with once the config file and the defaults are applied
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if kwargs.get("config_file") and kwargs.get("config_env"):
            LOG.debug("Using config file: %s, config environment: %s", kwargs["config_file"], kwargs["config_env"])

        expanded = []
        for key, value in kwargs.items():
            if key in _CONFIG_PARAMS or not value:
                continue
            expanded.append(f"--{key}" if value is True else f"--{key}={value}")
        LOG.debug("Expand command line arguments to: %s", " ".join(expanded))

        return func(*args, **kwargs)

    return wrapper


@click.command(cls=BaseCommand)
@common_options
@click.version_option(version=__version__, prog_name="Fun CLI")
@pass_context
def cli(ctx):
    """
    Fun CLI

    Builds the functions of a serverless application template, installing their dependencies on the host or
    inside a container.
    """
    if not ctx.debug:
        FunCliLogger.configure_cli_loggers(FUN_CLI_FORMATTER, logging.INFO)
