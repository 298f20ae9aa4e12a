"""
Detects which dependency installation flows apply to the code of a function
"""

import logging
import os
from typing import Dict, List, NamedTuple, Optional

LOG = logging.getLogger(__name__)


class TaskFlow(NamedTuple):
    name: str
    language: Optional[str]
    dependency_manager: Optional[str]
    manifest_name: Optional[str]


DEFAULT_TASK_FLOW = TaskFlow(name="DefaultTaskFlow", language=None, dependency_manager=None, manifest_name=None)

PYTHON_PIP_TASK_FLOW = TaskFlow(
    name="PipTaskFlow", language="python", dependency_manager="pip", manifest_name="requirements.txt"
)

NODEJS_NPM_TASK_FLOW = TaskFlow(
    name="NpmTaskFlow", language="nodejs", dependency_manager="npm", manifest_name="package.json"
)

JAVA_MAVEN_TASK_FLOW = TaskFlow(
    name="MavenTaskFlow", language="java", dependency_manager="maven", manifest_name="pom.xml"
)

PHP_COMPOSER_TASK_FLOW = TaskFlow(
    name="ComposerTaskFlow", language="php", dependency_manager="composer", manifest_name="composer.json"
)

# Runtime families are matched on the prefix of the runtime name, python2.7 and python3 are both "python"
TASK_FLOWS_BY_RUNTIME_FAMILY: Dict[str, List[TaskFlow]] = {
    "python": [PYTHON_PIP_TASK_FLOW],
    "nodejs": [NODEJS_NPM_TASK_FLOW],
    "java": [JAVA_MAVEN_TASK_FLOW],
    "php": [PHP_COMPOSER_TASK_FLOW],
}


def get_runtime_family(runtime: Optional[str]) -> Optional[str]:
    if not runtime:
        return None

    for family in TASK_FLOWS_BY_RUNTIME_FAMILY:
        if runtime.startswith(family):
            return family

    return None


def detect_task_flows(runtime: Optional[str], code_dir: str) -> List[TaskFlow]:
    """
    Finds the task flows to run for a function by looking for the manifests known for its runtime in ``code_dir``.

    Parameters
    ----------
    runtime : str
        Runtime of the function, e.g. python3 or nodejs12
    code_dir : str
        Absolute path of the function code

    Returns
    -------
    List[TaskFlow]
        Detected task flows, ``[DEFAULT_TASK_FLOW]`` when no manifest is found
    """
    family = get_runtime_family(runtime)

    if not family or not os.path.isdir(code_dir):
        return [DEFAULT_TASK_FLOW]

    task_flows = [
        task_flow
        for task_flow in TASK_FLOWS_BY_RUNTIME_FAMILY[family]
        if os.path.isfile(os.path.join(code_dir, task_flow.manifest_name))
    ]

    LOG.debug("Task flows detected for runtime %s in %s: %s", runtime, code_dir, [flow.name for flow in task_flows])

    return task_flows or [DEFAULT_TASK_FLOW]


def is_only_default_task_flow(task_flows: List[TaskFlow]) -> bool:
    return len(task_flows) == 1 and task_flows[0] == DEFAULT_TASK_FLOW
