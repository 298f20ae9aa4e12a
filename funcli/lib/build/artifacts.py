"""
Locates and prepares the directories built artifacts are written to
"""

import logging
import os

from funcli.lib.build.constants import DEFAULT_ARTIFACTS_SUBDIR
from funcli.lib.utils import osutils

LOG = logging.getLogger(__name__)


class ArtifactDirectoryManager:
    """
    A build run writes into ``<base_dir>/<artifacts_subdir>``, one ``<service>/<function>`` folder per function.
    An install run works in place: the base directory and the function code directories are used as they are.
    """

    def __init__(self, artifacts_subdir: str = DEFAULT_ARTIFACTS_SUBDIR):
        self._artifacts_subdir = artifacts_subdir

    def resolve_root_artifacts_dir(self, base_dir: str, build_stage: bool) -> str:
        if not build_stage:
            return base_dir

        root_artifacts_dir = os.path.join(base_dir, self._artifacts_subdir)
        self.clean_directory(root_artifacts_dir)

        return root_artifacts_dir

    @staticmethod
    def resolve_function_artifacts_dir(
        root_artifacts_dir: str, service_name: str, function_name: str, code_dir: str, build_stage: bool
    ) -> str:
        if not build_stage:
            return code_dir

        return os.path.join(root_artifacts_dir, service_name, function_name)

    @staticmethod
    def prepare_function_artifacts_dir(func_artifacts_dir: str, build_stage: bool) -> None:
        """
        Empties the artifacts directory of a function before anything is written to it. Nothing is done for an
        install run, the directory is the function code itself.
        """
        if not build_stage:
            return

        ArtifactDirectoryManager.clean_directory(func_artifacts_dir)

    @staticmethod
    def clean_directory(path: str) -> None:
        LOG.debug("Cleaning artifacts directory %s", path)
        osutils.empty_directory(path)
