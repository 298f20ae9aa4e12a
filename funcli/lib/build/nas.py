"""
NAS support for builds: resolving the local directories backing a service's NAS mount points, and collecting the
NAS content a build produced into them.
"""

import logging
import os
import shutil
from typing import Any, List, NamedTuple, Optional

import docker.errors

from funcli.lib.build.constants import DEFAULT_NAS_PATH_SUFFIX
from funcli.lib.build.exceptions import InvalidNasConfigError
from funcli.lib.utils import osutils
from funcli.local.docker.exceptions import ImageCopyError

LOG = logging.getLogger(__name__)

AUTO_NAS_CONFIG = "Auto"
AUTO_NAS_LOCAL_SUBDIR = "auto-default"
AUTO_NAS_MOUNT_DIR = "/mnt/auto"


class NasMapping(NamedTuple):
    local_nas_dir: str
    remote_nas_dir: str


def get_default_nas_dir(base_dir: str) -> str:
    return os.path.join(base_dir, DEFAULT_NAS_PATH_SUFFIX)


def convert_nas_config_to_nas_mappings(default_nas_dir: str, nas_config: Any, service_name: str) -> List[NasMapping]:
    """
    Resolves the NasConfig of a service into the list of (local directory, remote directory) pairs.

    ``Auto`` maps a per service folder to /mnt/auto. Explicit mount points map
    ``<default_nas_dir>/<server host>/<server path>`` to their ``MountDir``.

    Raises
    ------
    InvalidNasConfigError
        When a mount point lacks ServerAddr or MountDir
    """
    if not nas_config:
        return []

    if nas_config == AUTO_NAS_CONFIG:
        return [NasMapping(os.path.join(default_nas_dir, AUTO_NAS_LOCAL_SUBDIR, service_name), AUTO_NAS_MOUNT_DIR)]

    if not isinstance(nas_config, dict):
        LOG.debug("Unsupported NasConfig %s of service %s, no NAS mapping resolved", nas_config, service_name)
        return []

    nas_mappings = []
    for mount_point in nas_config.get("MountPoints") or []:
        server_addr = mount_point.get("ServerAddr") or ""
        mount_dir = mount_point.get("MountDir")
        if ":" not in server_addr or not mount_dir:
            raise InvalidNasConfigError(
                f"Invalid NAS mount point {dict(mount_point)} of service {service_name}, "
                "ServerAddr must look like '<host>:<path>' and MountDir is required"
            )

        server_host, server_path = server_addr.split(":", 1)
        local_nas_dir = os.path.join(default_nas_dir, server_host, server_path.lstrip("/"))
        nas_mappings.append(NasMapping(os.path.normpath(local_nas_dir), mount_dir))

    return nas_mappings


class NasArtifactSynchronizer:
    """
    Collects the NAS content of a function build into the directories shared by the whole build run.
    """

    def __init__(self, image_builder, nas_path_suffix: str = DEFAULT_NAS_PATH_SUFFIX):
        """
        Parameters
        ----------
        image_builder : funcli.local.docker.image.ImageBuilder
            Used to copy NAS directories out of built images
        nas_path_suffix : str
            Path, relative to an artifacts directory, where dependency installers leave NAS content
        """
        self._image_builder = image_builder
        self._nas_path_suffix = nas_path_suffix

    def synchronize(
        self, nas_mappings: Optional[List[NasMapping]], image_tag: str, root_dir: str, func_artifact_dir: str
    ) -> None:
        self.consolidate_function_nas_folder(root_dir, func_artifact_dir)

        for nas_mapping in nas_mappings or []:
            self._copy_mapping(nas_mapping, image_tag)

    def consolidate_function_nas_folder(self, root_dir: str, func_artifact_dir: str) -> None:
        """
        Moves the NAS folder found in ``func_artifact_dir`` into the NAS folder of ``root_dir``, merging with what
        other functions already put there.
        """
        func_nas_folder = os.path.join(func_artifact_dir, self._nas_path_suffix)
        root_nas_folder = os.path.join(root_dir, self._nas_path_suffix)

        if not os.path.isdir(func_nas_folder) or os.path.abspath(func_nas_folder) == os.path.abspath(root_nas_folder):
            return

        LOG.info("moving %s to %s", func_nas_folder, root_nas_folder)

        os.makedirs(root_nas_folder, exist_ok=True)
        osutils.copytree(func_nas_folder, root_nas_folder)
        shutil.rmtree(func_nas_folder)

    def _copy_mapping(self, nas_mapping: NasMapping, image_tag: str) -> None:
        remote_nas_dir = nas_mapping.remote_nas_dir
        if not remote_nas_dir.endswith("/"):
            remote_nas_dir += "/"

        try:
            LOG.info("copy from container %s. to %s", remote_nas_dir, nas_mapping.local_nas_dir)
            self._image_builder.copy_from_image(image_tag, remote_nas_dir + ".", nas_mapping.local_nas_dir)
        except (ImageCopyError, docker.errors.APIError, OSError) as ex:
            LOG.warning(
                "Failed to copy directory %s of image %s to %s: %s",
                remote_nas_dir,
                image_tag,
                nas_mapping.local_nas_dir,
                str(ex),
            )
