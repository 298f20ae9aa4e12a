"""
Options shared by fun build and fun install
"""

import logging
import os

import click

_TEMPLATE_OPTION_DEFAULT_VALUE = "template.[yml|yaml]"
_TEMPLATE_FILE_NAMES = ("template.yml", "template.yaml")

LOG = logging.getLogger(__name__)


def get_or_default_template_file_name(ctx, param, provided_value):
    """
    Resolves --template to an absolute path. Without a value, the ``template`` key of the config file is used,
    then whichever of template.yml and template.yaml exists in the working directory, template.yml otherwise.
    """
    if provided_value == _TEMPLATE_OPTION_DEFAULT_VALUE:
        configured = ctx.default_map.get("template") if ctx and ctx.default_map else None
        existing = [name for name in _TEMPLATE_FILE_NAMES if os.path.exists(name)]
        provided_value = configured or (existing[0] if existing else _TEMPLATE_FILE_NAMES[0])

    template_file = os.path.abspath(provided_value)
    LOG.debug("Using template at %s", template_file)

    return template_file


template_option = click.option(
    "--template-file",
    "--template",
    "-t",
    default=_TEMPLATE_OPTION_DEFAULT_VALUE,
    type=click.Path(),
    envvar="FUN_TEMPLATE_FILE",
    callback=get_or_default_template_file_name,
    show_default=True,
    is_eager=True,
    help="The path of fun template file.",
)

base_dir_option = click.option(
    "--base-dir",
    "-b",
    default=None,
    type=click.Path(dir_okay=True, file_okay=False),
    help="Directory the CodeUri of functions is relative to. Defaults to the directory of the template.",
)

use_docker_option = click.option("--use-docker", "-d", is_flag=True, help="Use docker container to build functions.")

verbose_option = click.option("--verbose", is_flag=True, help="Verbose output of the dependency installers.")
