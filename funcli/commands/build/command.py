"""
The "fun build" command
"""

import logging
from typing import Optional

import click

from funcli.cli.cli_config_file import ConfigProvider, configuration_option
from funcli.cli.main import common_options as cli_framework_options
from funcli.cli.main import pass_context, print_cmdline_args
from funcli.commands._utils.options import base_dir_option, template_option, use_docker_option, verbose_option
from funcli.lib.build.constants import BUILD_STAGE

LOG = logging.getLogger(__name__)

HELP_TEXT = """
Build the dependencies of the functions in the template.

\b
Functions having a Funfile, or a fun.yml converted into one, are always built inside a container.
The others are built on the host, or inside a container with --use-docker, when a manifest such
as requirements.txt, package.json, pom.xml or composer.json is found in their CodeUri.

\b
Built artifacts are written to .fun/build/artifacts together with a template pointing at them.

\b
Examples:
    $ fun build
    $ fun build svc/fn --use-docker
    $ fun build svc
"""


@click.command("build", help=HELP_TEXT, short_help="Build the dependencies of the functions.")
@configuration_option(provider=ConfigProvider(section="parameters"))
@use_docker_option
@template_option
@base_dir_option
@verbose_option
@cli_framework_options
@click.argument("build_name", required=False)
@pass_context
@print_cmdline_args
def cli(
    ctx,
    # types match the click options above
    build_name: Optional[str],
    use_docker: bool,
    template_file: str,
    base_dir: Optional[str],
    verbose: bool,
    config_file: str,
    config_env: str,
) -> None:
    """
    `fun build` command entry point
    """
    # cli only maps click parameters, do_cli does the work
    do_cli(build_name, template_file, base_dir, use_docker, verbose)  # pragma: no cover


def do_cli(
    build_name: Optional[str],
    template: str,
    base_dir: Optional[str],
    use_docker: bool,
    verbose: bool,
) -> None:
    """
    Implementation of the ``cli`` method
    """
    from funcli.commands.build.build_context import BuildContext

    LOG.debug("'build' command is called")

    with BuildContext(
        build_name,
        template,
        base_dir,
        use_container=use_docker,
        stages=[BUILD_STAGE],
        verbose=verbose,
    ) as ctx:
        ctx.run()
