"""
Decides how the dependencies of each function are built
"""

import logging
from enum import Enum
from typing import List, Optional

from funcli.lib.build.taskflow import TaskFlow, is_only_default_task_flow

LOG = logging.getLogger(__name__)


class BuildStrategy(Enum):
    SKIP = "skip"
    CONTAINER = "container"
    IN_PROCESS = "in-process"


class BuildStrategySelector:
    """
    Chooses the build strategy of a function from the presence of a Funfile and the task flows detected in its code.

    A Funfile always means a container build, whatever the ``use_container`` flag says. A function with neither a
    Funfile nor a manifest has nothing to build and is skipped, even when containers were requested.
    """

    def __init__(self, use_container: bool, build_stage: bool):
        self._use_container = use_container
        self._build_stage = build_stage

    def select(self, funfile_path: Optional[str], task_flows: Optional[List[TaskFlow]]) -> BuildStrategy:
        manifest_exists = bool(task_flows) and not is_only_default_task_flow(task_flows)

        if self._build_stage and not funfile_path and not manifest_exists:
            return BuildStrategy.SKIP

        if not self._build_stage and not manifest_exists:
            return BuildStrategy.SKIP

        if funfile_path or self._use_container:
            return BuildStrategy.CONTAINER

        return BuildStrategy.IN_PROCESS
