"""
Options accepted by every fun command
"""

import click

from funcli.cli.context import Context


def _set_debug(ctx, param, value):
    ctx.ensure_object(Context).debug = value
    return value


debug_option = click.option(
    "--debug",
    is_flag=True,
    expose_value=False,
    envvar="FUN_DEBUG",
    callback=_set_debug,
    help="Turn on debug logging.",
)
