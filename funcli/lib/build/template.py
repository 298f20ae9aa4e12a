"""
Reads the functions to build out of a template and points the built ones at their artifacts
"""

import copy
import logging
import os
import pathlib
from typing import Any, Dict, Iterator, List, NamedTuple, Optional

from funcli.lib.build.exceptions import FunctionNotFoundError, InvalidFunctionPropertyError

LOG = logging.getLogger(__name__)

SERVICE_RESOURCE_TYPE = "Aliyun::Serverless::Service"
FUNCTION_RESOURCE_TYPE = "Aliyun::Serverless::Function"

DEFAULT_CODE_URI = "."


class FunctionBuildTarget(NamedTuple):
    """
    A function of the template together with the service it belongs to. Function properties are checked when the
    target is resolved, so ``runtime`` and ``code_uri`` are always usable afterwards.
    """

    service_name: str
    function_name: str
    service_res: Dict
    function_res: Dict

    @property
    def full_name(self) -> str:
        return f"{self.service_name}/{self.function_name}"

    @property
    def runtime(self) -> str:
        return self.function_res["Properties"]["Runtime"]

    @property
    def code_uri(self) -> str:
        return self.function_res["Properties"].get("CodeUri") or DEFAULT_CODE_URI

    @property
    def nas_config(self) -> Optional[Any]:
        return (self.service_res.get("Properties") or {}).get("NasConfig")


def _validate_function(service_name: str, function_name: str, function_res: Dict) -> None:
    properties = function_res.get("Properties")
    if not isinstance(properties, dict):
        raise InvalidFunctionPropertyError(f"Function {service_name}/{function_name} has no Properties")

    if not properties.get("Runtime"):
        raise InvalidFunctionPropertyError(f"Function {service_name}/{function_name} has no Runtime property")

    code_uri = properties.get("CodeUri")
    if code_uri is not None and not isinstance(code_uri, str):
        raise InvalidFunctionPropertyError(
            f"CodeUri of function {service_name}/{function_name} must be a path, got {code_uri!r}"
        )


def iterate_functions(template: Dict) -> Iterator[FunctionBuildTarget]:
    """
    Yields every function of every service of the template, in declaration order

    Raises
    ------
    InvalidFunctionPropertyError
        When a function lacks the properties needed to build it
    """
    resources = template.get("Resources") or {}

    for service_name, service_res in resources.items():
        if not isinstance(service_res, dict) or service_res.get("Type") != SERVICE_RESOURCE_TYPE:
            continue

        for function_name, function_res in service_res.items():
            if not isinstance(function_res, dict) or function_res.get("Type") != FUNCTION_RESOURCE_TYPE:
                continue

            _validate_function(service_name, function_name, function_res)
            yield FunctionBuildTarget(service_name, function_name, service_res, function_res)


def _matches(build_name: str, target: FunctionBuildTarget) -> bool:
    if "/" in build_name:
        service_name, function_name = build_name.split("/", 1)
        return target.service_name == service_name and target.function_name == function_name

    return build_name in (target.function_name, target.service_name)


def find_build_targets(build_name: Optional[str], template: Dict) -> List[FunctionBuildTarget]:
    """
    Finds the functions to build

    Parameters
    ----------
    build_name : Optional[str]
        ``<service>/<function>``, a function name or a service name. Every function is built when it is empty
    template : Dict
        Parsed template

    Raises
    ------
    FunctionNotFoundError
        When ``build_name`` matches no function of the template
    """
    targets = list(iterate_functions(template))

    if not build_name:
        return targets

    matched = [target for target in targets if _matches(build_name, target)]
    if not matched:
        raise FunctionNotFoundError(f"Could not find any function named {build_name} in the template")

    return matched


def find_function_code_uris(template: Dict, base_dir: str) -> List[str]:
    return [os.path.abspath(os.path.join(base_dir, target.code_uri)) for target in iterate_functions(template)]


def update_template(
    template: Dict,
    targets: List[FunctionBuildTarget],
    skipped: List[FunctionBuildTarget],
    base_dir: str,
    root_artifacts_dir: str,
) -> Dict:
    """
    Returns a copy of the template where the CodeUri of each built function points at its artifacts directory,
    relative to ``base_dir``. Skipped functions and functions that were not part of the build keep their CodeUri.
    """
    updated_template = copy.deepcopy(template)
    skipped_names = {target.full_name for target in skipped}
    resources = updated_template.get("Resources") or {}

    for target in targets:
        if target.full_name in skipped_names:
            continue

        artifacts_dir = os.path.join(root_artifacts_dir, target.service_name, target.function_name)
        code_uri = pathlib.Path(os.path.relpath(artifacts_dir, base_dir)).as_posix()

        properties = resources[target.service_name][target.function_name].setdefault("Properties", {})
        LOG.debug("Updating CodeUri of %s from %s to %s", target.full_name, properties.get("CodeUri"), code_uri)
        properties["CodeUri"] = code_uri

    return updated_template
