"""
The "fun install" command
"""

import logging
from typing import Optional

import click

from funcli.cli.cli_config_file import ConfigProvider, configuration_option
from funcli.cli.main import common_options as cli_framework_options
from funcli.cli.main import pass_context, print_cmdline_args
from funcli.commands._utils.options import template_option, use_docker_option, verbose_option
from funcli.lib.build.constants import INSTALL_STAGE

LOG = logging.getLogger(__name__)

HELP_TEXT = """
Install the dependencies of the functions in the template next to their code.

\b
Unlike build, install writes into the CodeUri of each function and leaves the template
untouched. Functions without a manifest are skipped.

\b
Examples:
    $ fun install
    $ fun install -f svc/fn --use-docker
"""


@click.command("install", help=HELP_TEXT, short_help="Install the dependencies of the functions in place.")
@configuration_option(provider=ConfigProvider(section="parameters"))
@use_docker_option
@click.option(
    "--function",
    "-f",
    "function_name",
    default=None,
    help="Function to install dependencies for: <service>/<function>, a function name or a service name.",
)
@template_option
@verbose_option
@cli_framework_options
@pass_context
@print_cmdline_args
def cli(
    ctx,
    # types match the click options above
    use_docker: bool,
    function_name: Optional[str],
    template_file: str,
    verbose: bool,
    config_file: str,
    config_env: str,
) -> None:
    """
    `fun install` command entry point
    """
    # cli only maps click parameters, do_cli does the work
    do_cli(function_name, template_file, use_docker, verbose)  # pragma: no cover


def do_cli(function_name: Optional[str], template: str, use_docker: bool, verbose: bool) -> None:
    """
    Implementation of the ``cli`` method
    """
    from funcli.commands.build.build_context import BuildContext

    LOG.debug("'install' command is called")

    with BuildContext(
        function_name,
        template,
        None,
        use_container=use_docker,
        stages=[INSTALL_STAGE],
        verbose=verbose,
    ) as ctx:
        ctx.run()
