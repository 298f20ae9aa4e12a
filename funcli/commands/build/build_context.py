"""
Context object used by build and install commands
"""

import logging
import os
import pathlib
from typing import List, Optional

import click

from funcli.commands._utils.template import get_template_data
from funcli.commands.build.exceptions import InvalidBaseDirException
from funcli.commands.exceptions import UserException
from funcli.lib.build.app_builder import ApplicationBuilder, ApplicationBuildResult
from funcli.lib.build.builder import FunctionInstaller
from funcli.lib.build.constants import BUILD_STAGE, BUILT_TEMPLATE_NAME
from funcli.lib.build.exceptions import (
    BuildError,
    BuildInsideContainerError,
    FunctionNotFoundError,
    InvalidFunctionPropertyError,
    InvalidNasConfigError,
    UnsupportedRuntimeError,
)
from funcli.local.docker.exceptions import DockerImagePullFailedException, ImageCopyError
from funcli.local.docker.manager import ContainerManager

LOG = logging.getLogger(__name__)


class BuildContext:
    """
    Loads the template, resolves the base directory and runs an ApplicationBuilder with the given options.
    Errors raised while building are reported to the user as UserExceptions.
    """

    def __init__(
        self,
        build_name: Optional[str],
        template_file: str,
        base_dir: Optional[str],
        use_container: bool = False,
        stages: Optional[List[str]] = None,
        verbose: bool = False,
    ) -> None:
        self._build_name = build_name
        self._template_file = template_file
        self._base_dir = base_dir
        self._use_container = use_container
        self._stages = stages or [BUILD_STAGE]
        self._verbose = verbose

        self._template_dict: Optional[dict] = None
        self._container_manager: Optional[ContainerManager] = None
        self._build_result: Optional[ApplicationBuildResult] = None

    def __enter__(self) -> "BuildContext":
        self.set_up()
        return self

    def __exit__(self, *args):
        pass

    def set_up(self) -> None:
        self._template_dict = get_template_data(self._template_file)

        if not self._base_dir:
            # Base directory, if not provided, is the directory containing the template
            self._base_dir = str(pathlib.Path(self._template_file).resolve().parent)
        elif not os.path.isdir(self._base_dir):
            raise InvalidBaseDirException(f"Base directory {self._base_dir} does not exist")

        self._base_dir = os.path.abspath(self._base_dir)

        if self._use_container:
            self._container_manager = ContainerManager()

    def run(self) -> None:
        """Runs the building process by creating an ApplicationBuilder."""
        try:
            builder = ApplicationBuilder(
                self.template_dict,
                self.base_dir,
                template_path=self._template_file,
                build_name=self._build_name,
                use_container=self._use_container,
                stages=self._stages,
                verbose=self._verbose,
                installer=FunctionInstaller(container_manager=self._container_manager),
            )

            self._build_result = builder.build()

            if self.build_stage:
                click.secho("\nBuild Success\n", fg="green")
                click.echo("Built artifacts: " + os.path.relpath(self._build_result.root_artifacts_dir, self.base_dir))
                click.echo(
                    "Built template: "
                    + os.path.relpath(
                        os.path.join(self._build_result.root_artifacts_dir, BUILT_TEMPLATE_NAME), self.base_dir
                    )
                )
            else:
                click.secho("\nInstall Success\n", fg="green")
        except FunctionNotFoundError as function_not_found_ex:
            raise UserException(
                str(function_not_found_ex), wrapped_from=function_not_found_ex.__class__.__name__
            ) from function_not_found_ex
        except (
            BuildError,
            BuildInsideContainerError,
            DockerImagePullFailedException,
            ImageCopyError,
            InvalidFunctionPropertyError,
            InvalidNasConfigError,
            UnsupportedRuntimeError,
        ) as ex:
            self._build_result = getattr(ex, "build_result", None)
            click.secho("\nBuild Failed" if self.build_stage else "\nInstall Failed", fg="red")

            # BuildError carries the name of the library error it stands for
            wrapped_from = getattr(ex, "wrapped_from", None) or ex.__class__.__name__
            raise UserException(str(ex), wrapped_from=wrapped_from) from ex

    @property
    def template_dict(self) -> dict:
        return self._template_dict or {}

    @property
    def base_dir(self) -> str:
        return str(self._base_dir)

    @property
    def build_stage(self) -> bool:
        return BUILD_STAGE in self._stages

    @property
    def build_result(self) -> Optional[ApplicationBuildResult]:
        return self._build_result
