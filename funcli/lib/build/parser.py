"""
Converts the legacy ``fun.yml`` build descriptor into a Funfile, and a Funfile into a Dockerfile
"""

import logging
import shlex
from typing import Dict, List, NamedTuple

import yaml

from funcli.lib.build.constants import CONTAINER_CODE_DIR, get_build_image
from funcli.lib.build.exceptions import FunfileConversionError
from funcli.yamlhelper import parse_yaml_file

LOG = logging.getLogger(__name__)

RUNTIME_INSTRUCTION = "RUNTIME"

# fun.yml task action -> fun-install sub command
TASK_ACTIONS = {
    "apt": "apt-get install",
    "pip": "pip install",
    "npm": "npm install",
}
SHELL_ACTION = "shell"

SERVICE_LABEL = "com.aliyun.fun.service"
FUNCTION_LABEL = "com.aliyun.fun.function"


class Instruction(NamedTuple):
    name: str
    args: str
    raw: str


def fun_yml_to_funfile(fun_yml_path: str) -> str:
    """
    Translates a fun.yml file into the content of an equivalent Funfile

    Parameters
    ----------
    fun_yml_path : str
        Path to the fun.yml file

    Returns
    -------
    str
        Funfile content

    Raises
    ------
    FunfileConversionError
        When the fun.yml can not be read or declares something that has no Funfile equivalent
    """
    try:
        fun_yml = parse_yaml_file(fun_yml_path)
    except (OSError, ValueError, yaml.YAMLError) as ex:
        raise FunfileConversionError(f"Failed to read {fun_yml_path}: {ex}") from ex

    if not isinstance(fun_yml, dict) or not fun_yml.get("runtime"):
        raise FunfileConversionError(f"'runtime' is missing in {fun_yml_path}")

    tasks = fun_yml.get("tasks") or []
    if not isinstance(tasks, list):
        raise FunfileConversionError(f"'tasks' in {fun_yml_path} must be a list")

    lines = [f"{RUNTIME_INSTRUCTION} {fun_yml['runtime']}"]
    for task in tasks:
        lines.extend(_task_to_funfile_lines(task, fun_yml_path))

    return "\n".join(lines) + "\n"


def _task_to_funfile_lines(task: Dict, fun_yml_path: str) -> List[str]:
    if not isinstance(task, dict):
        raise FunfileConversionError(f"Invalid task {task!r} in {fun_yml_path}")

    lines = []
    if task.get("name"):
        lines.append(f"# {task['name']}")

    for key, value in (task.get("env") or {}).items():
        lines.append(f"ENV {key}={shlex.quote(str(value))}")

    if SHELL_ACTION in task:
        commands = [line.strip() for line in str(task[SHELL_ACTION]).splitlines() if line.strip()]
        lines.append("RUN " + " && ".join(commands))
        return lines

    for action, sub_command in TASK_ACTIONS.items():
        if action in task:
            packages = task[action]
            if isinstance(packages, list):
                packages = " ".join(str(package) for package in packages)
            lines.append(f"RUN fun-install {sub_command} {packages}")
            return lines

    raise FunfileConversionError(f"Unsupported task {dict(task)} in {fun_yml_path}")


def parse_funfile(content: str) -> List[Instruction]:
    """
    Splits a Funfile into instructions. Comments and blank lines are dropped, lines ending with a backslash are
    joined with the next one.
    """
    instructions = []
    pending = ""
    for line in content.splitlines():
        stripped = line.strip()
        if not pending and (not stripped or stripped.startswith("#")):
            continue

        if stripped.endswith("\\"):
            pending += stripped[:-1].rstrip() + " "
            continue

        statement = pending + stripped
        pending = ""
        name, _, args = statement.partition(" ")
        instructions.append(Instruction(name.upper(), args.strip(), statement))

    if pending.strip():
        name, _, args = pending.strip().partition(" ")
        instructions.append(Instruction(name.upper(), args.strip(), pending.strip()))

    return instructions


def funfile_to_dockerfile(funfile_path: str, runtime: str, service_name: str, function_name: str) -> str:
    """
    Translates a Funfile into a Dockerfile building ``service_name/function_name``

    The leading RUNTIME instruction selects the build image of the function runtime. The function code is copied
    into the image before the remaining Funfile instructions run, so whatever they install ends up next to the code.

    Raises
    ------
    FunfileConversionError
        When the Funfile can not be read or is not a valid Funfile
    """
    try:
        with open(funfile_path, "r", encoding="utf-8") as fp:
            instructions = parse_funfile(fp.read())
    except OSError as ex:
        raise FunfileConversionError(f"Failed to read {funfile_path}: {ex}") from ex

    if not instructions or instructions[0].name != RUNTIME_INSTRUCTION:
        raise FunfileConversionError(f"{funfile_path} must start with a '{RUNTIME_INSTRUCTION}' instruction")

    funfile_runtime = instructions[0].args
    if funfile_runtime != runtime:
        LOG.warning(
            "Runtime %s in %s is different from runtime %s of %s/%s in template, %s will be used",
            funfile_runtime,
            funfile_path,
            runtime,
            service_name,
            function_name,
            runtime,
        )

    lines = [
        f"FROM {get_build_image(runtime)}",
        f'LABEL {SERVICE_LABEL}="{service_name}" {FUNCTION_LABEL}="{function_name}"',
        f"WORKDIR {CONTAINER_CODE_DIR}",
        f"COPY . {CONTAINER_CODE_DIR}",
    ]
    for instruction in instructions[1:]:
        if instruction.name == RUNTIME_INSTRUCTION:
            raise FunfileConversionError(f"{funfile_path} declares '{RUNTIME_INSTRUCTION}' more than once")
        if instruction.name == "FROM":
            raise FunfileConversionError(f"'FROM' is not allowed in {funfile_path}, use '{RUNTIME_INSTRUCTION}'")
        lines.append(instruction.raw)

    return "\n".join(lines) + "\n"
