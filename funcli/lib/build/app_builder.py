"""
Builds the application
"""

import logging
import os
import uuid
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional

from funcli.lib.build import funfile as funfile_utils
from funcli.lib.build import metadata
from funcli.lib.build import template as template_utils
from funcli.lib.build.artifacts import ArtifactDirectoryManager
from funcli.lib.build.build_strategy import BuildStrategy, BuildStrategySelector
from funcli.lib.build.builder import FunctionInstaller
from funcli.lib.build.constants import (
    BUILD_META_NAME,
    BUILD_STAGE,
    BUILT_TEMPLATE_NAME,
    COMPILED_ARCHIVE_RUNTIMES,
    COMPILED_ARCHIVE_SUFFIXES,
    CONTAINER_CODE_DIR,
    FUNFILE_NAME,
    IMAGE_TAG_PREFIX,
)
from funcli.lib.build.exceptions import CodeUriNotFoundError
from funcli.lib.build.nas import NasArtifactSynchronizer, convert_nas_config_to_nas_mappings, get_default_nas_dir
from funcli.lib.build.taskflow import detect_task_flows
from funcli.lib.build.template import FunctionBuildTarget
from funcli.lib.utils.colors import Colored, Colors
from funcli.local.docker.image import ImageBuilder
from funcli.yamlhelper import yaml_dump

LOG = logging.getLogger(__name__)


class BuildStatus(Enum):
    SKIPPED = "skipped"
    BUILT = "built"
    FAILED = "failed"


class FunctionBuildResult(NamedTuple):
    """
    Outcome of the build of one function
    """

    target: FunctionBuildTarget
    status: BuildStatus
    artifact_dir: Optional[str] = None
    error: Optional[Exception] = None


class ApplicationBuildResult(NamedTuple):
    """
    Result of the application build, the outcome of every function and the updated template
    """

    results: List[FunctionBuildResult]
    root_artifacts_dir: str
    template_dict: Optional[Dict]

    @property
    def built(self) -> List[FunctionBuildTarget]:
        return [result.target for result in self.results if result.status == BuildStatus.BUILT]

    @property
    def skipped(self) -> List[FunctionBuildTarget]:
        return [result.target for result in self.results if result.status == BuildStatus.SKIPPED]


class ApplicationBuilder:
    """
    Class to build every function of a template. Depending on the presence of a Funfile, of manifests and on the
    options, each function is skipped, built inside a container or has its dependencies installed on the host.
    Functions are built one after the other, in the order the template declares them, and the first failure stops
    the build.
    """

    def __init__(
        self,
        template_dict: Dict,
        base_dir: str,
        template_path: Optional[str] = None,
        build_name: Optional[str] = None,
        use_container: bool = False,
        stages: Optional[List[str]] = None,
        verbose: bool = False,
        installer: Optional[FunctionInstaller] = None,
        image_builder: Optional[ImageBuilder] = None,
        artifact_manager: Optional[ArtifactDirectoryManager] = None,
        nas_synchronizer: Optional[NasArtifactSynchronizer] = None,
    ) -> None:
        """
        Initialize the class

        Parameters
        ----------
        template_dict : Dict
            Parsed template
        base_dir : str
            Path to a folder. Use this folder as the root to resolve relative CodeUris against
        template_path : Optional[str]
            Path of the template file, its modification time is recorded with the build metadata
        build_name : Optional[str]
            ``<service>/<function>``, function name or service name to build. Every function is built if not set
        use_container : bool
            Build functions with a manifest inside a container rather than on the host
        stages : Optional[List[str]]
            ``build`` writes artifacts to a separate directory and updates the template. ``install`` installs the
            dependencies in place. Defaults to ``["build"]``
        verbose : bool
            Ask the dependency installers for verbose output
        installer : Optional[FunctionInstaller]
            Installs function dependencies
        image_builder : Optional[ImageBuilder]
            Builds the image of functions having a Funfile. Created when first needed if not given
        artifact_manager : Optional[ArtifactDirectoryManager]
            Locates and cleans artifacts directories
        nas_synchronizer : Optional[NasArtifactSynchronizer]
            Collects NAS content out of Funfile images
        """
        self._template_dict = template_dict
        self._base_dir = base_dir
        self._template_path = template_path
        self._build_name = build_name
        self._use_container = use_container
        self._stages = stages or [BUILD_STAGE]
        self._verbose = verbose
        self._build_stage = BUILD_STAGE in self._stages

        self._installer = installer or FunctionInstaller()
        self._image_builder = image_builder
        self._artifact_manager = artifact_manager or ArtifactDirectoryManager()
        self._nas_synchronizer = nas_synchronizer
        self._strategy_selector = BuildStrategySelector(self._use_container, self._build_stage)
        self._colored = Colored()

    @property
    def image_builder(self) -> ImageBuilder:
        if not self._image_builder:
            self._image_builder = ImageBuilder()
        return self._image_builder

    @property
    def nas_synchronizer(self) -> NasArtifactSynchronizer:
        if not self._nas_synchronizer:
            self._nas_synchronizer = NasArtifactSynchronizer(self.image_builder)
        return self._nas_synchronizer

    def build(self) -> ApplicationBuildResult:
        """
        Build the application

        Returns
        -------
        ApplicationBuildResult
            Outcome of every function, the root artifacts directory and, for a build run, the updated template

        Raises
        ------
        Exception
            The error of the first function failing to build. Its ``build_result`` attribute holds the
            ApplicationBuildResult of the functions handled until then, ending with the FAILED one
        """
        if self._use_container:
            LOG.info("start %s functions using docker", "building" if self._build_stage else "installing")
        else:
            LOG.info("start %s function dependencies without docker", "building" if self._build_stage else "installing")

        LOG.debug("%s: %s", "buildName" if self._build_stage else "installName", self._build_name)

        targets = template_utils.find_build_targets(self._build_name, self._template_dict)
        root_artifacts_dir = self._artifact_manager.resolve_root_artifacts_dir(self._base_dir, self._build_stage)

        self._detect_unused_funfile()

        results: List[FunctionBuildResult] = []
        for target in targets:
            try:
                results.append(self._build_function(target, root_artifacts_dir))
            except Exception as ex:
                results.append(FunctionBuildResult(target, BuildStatus.FAILED, error=ex))
                LOG.error("Failed building %s", target.full_name)
                # Outcome of the functions handled so far, the failed one last
                ex.build_result = ApplicationBuildResult(results, root_artifacts_dir, None)
                raise

        updated_template = None
        if self._build_stage:
            skipped = [result.target for result in results if result.status == BuildStatus.SKIPPED]
            updated_template = template_utils.update_template(
                self._template_dict, targets, skipped, self._base_dir, root_artifacts_dir
            )
            self._write_template(updated_template, root_artifacts_dir)
            self._record_metadata(targets, root_artifacts_dir)

        return ApplicationBuildResult(results, root_artifacts_dir, updated_template)

    def _build_function(self, target: FunctionBuildTarget, root_artifacts_dir: str) -> FunctionBuildResult:
        LOG.info(self._colored.color_log(f"building {target.full_name}", Colors.SUCCESS), extra=dict(markup=True))

        code_dir = os.path.abspath(os.path.join(self._base_dir, target.code_uri))
        if not os.path.exists(code_dir):
            raise CodeUriNotFoundError(code_dir)

        if target.runtime in COMPILED_ARCHIVE_RUNTIMES and code_dir.endswith(COMPILED_ARCHIVE_SUFFIXES):
            LOG.warning(
                self._colored.color_log(
                    f"DetectionWarning: your codeuri is '{target.code_uri}', and 'fun build' will not compile your "
                    f"functions. It is recommended that you modify {target.full_name}'s 'CodeUri' property to the "
                    "directory where 'pom.xml' is located.",
                    Colors.FAILURE,
                ),
                extra=dict(markup=True),
            )

        artifact_dir = self._artifact_manager.resolve_function_artifacts_dir(
            root_artifacts_dir, target.service_name, target.function_name, code_dir, self._build_stage
        )

        task_flows = detect_task_flows(target.runtime, code_dir)
        funfile_path = funfile_utils.get_or_convert_funfile(code_dir) if os.path.isdir(code_dir) else None
        strategy = self._strategy_selector.select(funfile_path, task_flows)

        if funfile_path or strategy != BuildStrategy.SKIP:
            self._artifact_manager.prepare_function_artifacts_dir(artifact_dir, self._build_stage)

        image_tag = None
        if funfile_path:
            image_tag = self._build_funfile_image(target, code_dir, funfile_path, artifact_dir)

        if strategy == BuildStrategy.SKIP:
            LOG.debug(
                "could not find any manifest file for %s, %s stage for manifest will be skipped",
                target.full_name,
                self._stages,
            )
            return FunctionBuildResult(target, BuildStatus.SKIPPED, artifact_dir)

        if strategy == BuildStrategy.CONTAINER:
            self._installer.build_in_container(
                target.service_name,
                target.service_res,
                target.function_name,
                target.function_res,
                self._base_dir,
                code_dir,
                artifact_dir,
                self._verbose,
                image_tag,
                self._stages,
            )
        else:
            self._installer.build_in_process(
                target.service_name,
                target.function_name,
                code_dir,
                target.runtime,
                artifact_dir,
                self._verbose,
                self._stages,
            )

        return FunctionBuildResult(target, BuildStatus.BUILT, artifact_dir)

    def _build_funfile_image(
        self, target: FunctionBuildTarget, code_dir: str, funfile_path: str, artifact_dir: str
    ) -> str:
        LOG.info(
            self._colored.color_log("Funfile exist, Fun will use container to build forcely", Colors.WARNING),
            extra=dict(markup=True),
        )

        with funfile_utils.generated_dockerfile(
            funfile_path, code_dir, target.runtime, target.service_name, target.function_name
        ) as dockerfile_path:
            nas_mappings = None
            if target.nas_config:
                nas_mappings = convert_nas_config_to_nas_mappings(
                    get_default_nas_dir(self._base_dir), target.nas_config, target.service_name
                )

            image_tag = self.image_builder.build_image(code_dir, dockerfile_path, f"{IMAGE_TAG_PREFIX}{uuid.uuid4()}")

            LOG.info("copying function artifact to %s", artifact_dir)
            self.image_builder.copy_from_image(image_tag, f"{CONTAINER_CODE_DIR}/.", artifact_dir)

            self.nas_synchronizer.synchronize(nas_mappings, image_tag, self._base_dir, artifact_dir)

        return image_tag

    def _detect_unused_funfile(self) -> None:
        funfile_path = os.path.abspath(os.path.join(self._base_dir, FUNFILE_NAME))
        if not os.path.exists(funfile_path):
            return

        code_dirs = template_utils.find_function_code_uris(self._template_dict, self._base_dir)
        if os.path.abspath(self._base_dir) not in code_dirs:
            LOG.warning(
                self._colored.color_log(
                    f"Fun detected that the '{funfile_path}' is not included in any CodeUri.\n"
                    "Please make sure if it is the right configuration. if yes, ignore please.",
                    Colors.FAILURE,
                ),
                extra=dict(markup=True),
            )

    def _write_template(self, template_dict: Dict, root_artifacts_dir: str) -> None:
        template_path = os.path.join(root_artifacts_dir, BUILT_TEMPLATE_NAME)
        LOG.debug("Writing built template to %s", template_path)

        with open(template_path, "w", encoding="utf-8") as fp:
            fp.write(yaml_dump(template_dict))

    def _record_metadata(self, targets: List[FunctionBuildTarget], root_artifacts_dir: str) -> None:
        meta_paths = metadata.collect_meta_paths(self._base_dir, targets)
        if self._template_path:
            meta_paths.append(self._template_path)

        metadata.record_mtimes(meta_paths, self.build_ops, os.path.join(root_artifacts_dir, BUILD_META_NAME))

    @property
    def build_ops(self) -> Dict[str, Any]:
        return {"useDocker": self._use_container, "verbose": self._verbose, "buildName": self._build_name}
