"""
Default option values of fun commands, read from a funconfig.toml file
"""

import functools
import logging
import os
from pathlib import Path
from typing import Callable, Dict, List, Optional

import click

from funcli.commands.exceptions import ConfigException
from funcli.lib.config.exceptions import FunConfigFileReadException
from funcli.lib.config.funconfig import DEFAULT_CONFIG_FILE_NAME, DEFAULT_ENV, FunConfig

__all__ = ("ConfigProvider", "configuration_option")

LOG = logging.getLogger(__name__)


class ConfigProvider:
    """
    Reads the ``[<env>.<command>.<section>]`` table of a funconfig file, merged over the table of the ``global``
    command
    """

    def __init__(self, section: str):
        self.section = section

    def __call__(self, config_path: Optional[str], config_env: str, cmd_names: List[str]) -> Dict:
        """
        Returns
        -------
        dict
            Option values keyed by parameter name, empty when the file does not exist
        """
        config_file_path = Path(os.path.abspath(config_path or DEFAULT_CONFIG_FILE_NAME))
        funconfig = FunConfig(config_file_path.parent, config_file_path.name)

        if not funconfig.exists():
            LOG.debug("Config file '%s' does not exist", funconfig.path())
            return {}

        LOG.debug(
            "Loading configuration values from [%s.%s.%s] in config file at '%s'",
            config_env,
            FunConfig.to_key(cmd_names),
            self.section,
            funconfig.path(),
        )

        try:
            config = funconfig.get_all(cmd_names, self.section, env=config_env)
        except FunConfigFileReadException as ex:
            raise ConfigException(f"Error reading configuration: {ex}") from ex

        LOG.debug("Configuration values are: %s", config)
        return config


def _load_config_defaults(provider: Callable, ctx: click.Context, param: click.Parameter, value) -> None:
    """
    Callback of the hidden option, runs once --config-file and --config-env are parsed and fills
    ``ctx.default_map``. Values given on the command line still win over the file.
    """
    config_env = ctx.params.get("config_env") or DEFAULT_ENV
    config_file = ctx.params.get("config_file") or DEFAULT_CONFIG_FILE_NAME

    if config_file != DEFAULT_CONFIG_FILE_NAME and not os.path.isfile(config_file):
        raise ConfigException(f"Config file {config_file} does not exist or could not be read!")

    ctx.default_map = ctx.default_map or {}
    ctx.default_map.update(provider(config_file, config_env, [str(ctx.info_name)]))


def configuration_option(provider: Callable):
    """
    Adds --config-file and --config-env to a command, together with a hidden eager option loading the
    configuration values through ``provider``. It must be the first decorator below ``click.command``.

    Example
    -------
    >>> @click.command("build")
        @configuration_option(provider=ConfigProvider(section="parameters"))
        @click.option("--use-docker", is_flag=True)
        def build(use_docker):
            ...
    """
    config_loader = click.option(
        "--config-loader",
        hidden=True,
        is_eager=True,
        expose_value=False,
        callback=functools.partial(_load_config_defaults, provider),
        help="Hidden option loading configuration values.",
    )
    config_file = click.option(
        "--config-file",
        default=DEFAULT_CONFIG_FILE_NAME,
        show_default=True,
        is_eager=True,
        help="Configuration file containing default parameter values.",
    )
    config_env = click.option(
        "--config-env",
        default=DEFAULT_ENV,
        show_default=True,
        is_eager=True,
        help="Environment name specifying default parameter values in the configuration file.",
    )

    def decorator(f):
        # the loader is declared last so that click processes it after both eager options
        return config_env(config_file(config_loader(f)))

    return decorator
