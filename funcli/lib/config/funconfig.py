"""
The funconfig.toml file, default option values of fun commands per environment
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

import tomlkit

from funcli.lib.config.exceptions import FileParseException, FunConfigFileReadException

LOG = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE_NAME = "funconfig.toml"
DEFAULT_ENV = "default"
DEFAULT_GLOBAL_CMDNAME = "global"


def read_toml(filepath: Path) -> Any:
    """
    Returns the TOML document at ``filepath``, an empty one when the file can not be read

    Raises
    ------
    FileParseException
        When the file is not valid TOML
    """
    try:
        content = filepath.read_text(encoding="utf-8")
    except OSError as ex:
        LOG.debug("Unable to read %s: %s", filepath, ex)
        return tomlkit.document()

    try:
        return tomlkit.loads(content)
    except tomlkit.exceptions.TOMLKitError as ex:
        raise FileParseException(ex) from ex


class FunConfig:
    """
    A funconfig file holds one table per environment, command and section:

        [default.global.parameters]
        use_docker = true

        [default.build.parameters]
        base_dir = "src"

    Values of the ``global`` command apply to every command, the command's own table wins over them.
    """

    def __init__(self, config_dir, filename=None):
        self.filepath = Path(config_dir, filename or DEFAULT_CONFIG_FILE_NAME)
        self._document = None

    def get_all(self, cmd_names: List[str], section: str, env: str = DEFAULT_ENV) -> Dict:
        """
        Returns the values of ``section`` for the command made of ``cmd_names`` in environment ``env``, merged over
        the ``global`` ones. The file is read on first use.

        Raises
        ------
        FunConfigFileReadException
            When the file is not valid TOML
        """
        env_tables = self._read().get(env or DEFAULT_ENV, {})

        params = dict(env_tables.get(DEFAULT_GLOBAL_CMDNAME, {}).get(section, {}))
        params.update(env_tables.get(self.to_key(cmd_names), {}).get(section, {}))

        return params

    def exists(self) -> bool:
        return self.filepath.exists()

    def path(self) -> str:
        return str(self.filepath)

    def _read(self):
        if self._document is None:
            try:
                self._document = read_toml(self.filepath)
            except FileParseException as ex:
                raise FunConfigFileReadException(f"Error parsing {self.filepath}: {ex}") from ex
        return self._document

    @staticmethod
    def to_key(cmd_names: Iterable[str]) -> str:
        # "nas sync" and "dry-run" become "nas_sync_dry_run"
        return "_".join(cmd.replace("-", "_").replace(" ", "_") for cmd in cmd_names)
