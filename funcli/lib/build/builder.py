"""
Installs the dependencies of a single function, either on the host or inside a build container
"""

import json
import logging
import os
import shutil
import sys
from typing import Dict, List, NamedTuple, Optional, Tuple

from aws_lambda_builders.builder import LambdaBuilder
from aws_lambda_builders.exceptions import LambdaBuilderError

from funcli.lib.build.constants import (
    BUILD_STAGE,
    CONTAINER_ARTIFACTS_DIR,
    CONTAINER_CODE_DIR,
    FUN_DIR_NAME,
    get_build_image,
)
from funcli.lib.build.exceptions import BuildError, BuildInsideContainerError, UnsupportedRuntimeError
from funcli.lib.build.nas import convert_nas_config_to_nas_mappings, get_default_nas_dir
from funcli.lib.build.taskflow import detect_task_flows, get_runtime_family, is_only_default_task_flow
from funcli.lib.utils import osutils
from funcli.local.docker.manager import ContainerManager

LOG = logging.getLogger(__name__)

FUN_INSTALL_COMMAND = "fun-install"


class BuilderConfig(NamedTuple):
    language: str
    dependency_manager: str
    runtime: str
    executable_search_paths: Optional[List[str]] = None


# aws-lambda-builders workflow of each runtime family, as (language, dependency manager)
WORKFLOWS_BY_RUNTIME_FAMILY: Dict[str, Tuple[str, str]] = {
    "python": ("python", "pip"),
    "nodejs": ("nodejs", "npm"),
    "java": ("java", "maven"),
}


def get_builder_config(runtime: str) -> BuilderConfig:
    """
    Resolves the aws-lambda-builders workflow building ``runtime`` on the host.

    Function Compute runtime names do not carry the versions the workflows validate against. Python dependencies are
    installed with the interpreter running fun, nodejs runtimes get their ``.x`` suffix.
    """
    family = get_runtime_family(runtime)
    if family not in WORKFLOWS_BY_RUNTIME_FAMILY:
        raise UnsupportedRuntimeError(
            f"Runtime {runtime} is not supported when building without docker. "
            "Please retry with '--use-docker' to build inside a container."
        )

    language, dependency_manager = WORKFLOWS_BY_RUNTIME_FAMILY[family]

    if family == "python":
        host_python = f"python{sys.version_info.major}.{sys.version_info.minor}"
        return BuilderConfig(language, dependency_manager, host_python, [os.path.dirname(sys.executable)])

    if family == "nodejs" and not runtime.endswith(".x"):
        return BuilderConfig(language, dependency_manager, f"{runtime}.x")

    return BuilderConfig(language, dependency_manager, runtime)


class FunctionInstaller:
    """
    Runs the dependency installation of one function. ``build_in_process`` uses aws-lambda-builders on the host,
    ``build_in_container`` runs ``fun-install`` inside the build image of the runtime.
    """

    def __init__(self, container_manager=None):
        """
        Parameters
        ----------
        container_manager : funcli.local.docker.manager.ContainerManager
            Runs build containers. Created on the first container build if not given
        """
        self._container_manager = container_manager

    def build_in_process(
        self,
        service_name: str,
        function_name: str,
        code_dir: str,
        runtime: str,
        artifact_dir: str,
        verbose: bool,
        stages: List[str],
    ) -> str:
        """
        Installs the dependencies of the function on the host

        For a build run the code and its dependencies are written to ``artifact_dir``. For an install run
        ``artifact_dir`` is the code directory itself: the dependencies are installed aside and merged into it
        afterwards, the code directory is never handed to the workflow.

        The workflow works on a copy of ``code_dir`` without the ``.fun`` directory, which holds the artifacts
        directory when the code is the project root.

        Returns
        -------
        str
            Directory holding the result
        """
        config = get_builder_config(runtime)

        task_flows = detect_task_flows(runtime, code_dir)
        if is_only_default_task_flow(task_flows):
            raise BuildError(
                wrapped_from="ManifestNotFound", msg=f"No manifest found for {service_name}/{function_name}"
            )

        LOG.debug(
            "Building %s/%s in process with %s workflow for %s, verbose: %s",
            service_name,
            function_name,
            config.dependency_manager,
            config.runtime,
            verbose,
        )

        builder = LambdaBuilder(
            language=config.language, dependency_manager=config.dependency_manager, application_framework=None
        )

        with osutils.mkdir_temp(ignore_errors=True) as work_dir:
            source_dir = os.path.join(work_dir, "source")
            scratch_dir = os.path.join(work_dir, "scratch")
            os.makedirs(scratch_dir)

            LOG.debug("Staging %s into %s", code_dir, source_dir)
            osutils.copytree(code_dir, source_dir, ignore=shutil.ignore_patterns(FUN_DIR_NAME))
            manifest_path = os.path.join(source_dir, task_flows[0].manifest_name)

            try:
                if BUILD_STAGE in stages:
                    builder.build(
                        source_dir,
                        artifact_dir,
                        scratch_dir,
                        manifest_path,
                        runtime=config.runtime,
                        executable_search_paths=config.executable_search_paths,
                    )
                else:
                    dependencies_dir = os.path.join(work_dir, "dependencies")
                    builder.build(
                        source_dir,
                        os.path.join(work_dir, "artifacts"),
                        scratch_dir,
                        manifest_path,
                        runtime=config.runtime,
                        executable_search_paths=config.executable_search_paths,
                        dependencies_dir=dependencies_dir,
                        combine_dependencies=False,
                    )
                    if os.path.isdir(dependencies_dir):
                        LOG.debug("Merging dependencies of %s/%s into %s", service_name, function_name, artifact_dir)
                        osutils.copytree(dependencies_dir, artifact_dir)
            except LambdaBuilderError as ex:
                raise BuildError(wrapped_from=ex.__class__.__name__, msg=str(ex)) from ex

        return artifact_dir

    def build_in_container(
        self,
        service_name: str,
        service_res: Dict,
        function_name: str,
        function_res: Dict,
        base_dir: str,
        code_dir: str,
        artifact_dir: str,
        verbose: bool,
        image_tag: Optional[str],
        stages: List[str],
    ) -> str:
        """
        Installs the dependencies of the function inside a container

        ``image_tag`` is the image built from the Funfile of the function, if it has one. Otherwise the build image
        of the runtime is used.

        Raises
        ------
        BuildInsideContainerError
            When Docker is not reachable or the container exits with a non zero code
        """
        if not self._container_manager:
            self._container_manager = ContainerManager()

        if not self._container_manager.is_docker_reachable:
            raise BuildInsideContainerError(
                "Docker is unreachable. Docker needs to be running to build inside a container."
            )

        runtime = function_res["Properties"]["Runtime"]
        image = image_tag or get_build_image(runtime)

        volumes = {code_dir: {"bind": CONTAINER_CODE_DIR, "mode": "rw"}}
        container_artifact_dir = CONTAINER_CODE_DIR
        if os.path.abspath(artifact_dir) != os.path.abspath(code_dir):
            volumes[artifact_dir] = {"bind": CONTAINER_ARTIFACTS_DIR, "mode": "rw"}
            container_artifact_dir = CONTAINER_ARTIFACTS_DIR

        nas_config = (service_res.get("Properties") or {}).get("NasConfig")
        for nas_mapping in convert_nas_config_to_nas_mappings(get_default_nas_dir(base_dir), nas_config, service_name):
            os.makedirs(nas_mapping.local_nas_dir, exist_ok=True)
            volumes[nas_mapping.local_nas_dir] = {"bind": nas_mapping.remote_nas_dir, "mode": "rw"}

        params = {
            "serviceName": service_name,
            "functionName": function_name,
            "runtime": runtime,
            "codeUri": CONTAINER_CODE_DIR,
            "artifactDir": container_artifact_dir,
            "stages": stages,
            "verbose": verbose,
        }
        command = [FUN_INSTALL_COMMAND, "build", "--json-params", json.dumps(params)]

        LOG.debug("Building %s/%s inside container of image %s", service_name, function_name, image)
        exit_code = self._container_manager.run(image, command, volumes, CONTAINER_CODE_DIR)

        if exit_code != 0:
            raise BuildInsideContainerError(
                f"Building {service_name}/{function_name} inside container failed with exit code {exit_code}"
            )

        return artifact_dir
