"""
Runs build containers to completion
"""

import logging
import sys
from typing import Dict, List, Optional

import docker
import docker.errors

from funcli.lib.build.constants import IMAGE_TAG_PREFIX
from funcli.lib.utils.stream_writer import StreamWriter
from funcli.local.docker.exceptions import DockerImagePullFailedException
from funcli.local.docker.utils import get_docker_client, is_docker_reachable

LOG = logging.getLogger(__name__)


class ContainerManager:
    """
    Runs one build container at a time and waits for it to exit, streaming its output to ``stream_writer``,
    stderr by default
    """

    def __init__(self, docker_client=None, stream_writer: Optional[StreamWriter] = None):
        self.docker_client = docker_client or get_docker_client()
        self._stream_writer = stream_writer or StreamWriter(sys.stderr, auto_flush=True)

    @property
    def is_docker_reachable(self) -> bool:
        return is_docker_reachable(self.docker_client)

    def run(self, image: str, command: List[str], volumes: Dict[str, Dict[str, str]], working_dir: str) -> int:
        """
        Runs ``command`` in a new container of ``image``. The container is removed once it exits, or when starting
        it fails.

        Parameters
        ----------
        image : str
            Image to run, pulled first unless it is a local Funfile image
        command : List[str]
            Command to run in the container
        volumes : Dict[str, Dict[str, str]]
            Host path to {"bind": container path, "mode": "rw" | "ro"}
        working_dir : str
            Working directory inside the container

        Returns
        -------
        int
            Exit code of the command
        """
        self._ensure_image(image)

        LOG.debug("Running %s in container of image %s, volumes: %s", command, image, volumes)
        container = self.docker_client.containers.create(
            image, command=command, volumes=volumes, working_dir=working_dir, tty=False
        )
        try:
            container.start()
            for chunk in container.logs(stream=True, follow=True):
                self._stream_writer.write_str(chunk.decode("utf-8", errors="replace"))

            return int(container.wait().get("StatusCode", 1))
        finally:
            container.remove(force=True)

    def _ensure_image(self, image: str) -> None:
        """
        Build images are pulled on every run to pick up fixes of their tag. Images built from a Funfile only exist
        locally and are never pulled. A failed pull falls back on the local copy of the image, if any.
        """
        image_is_local = self.has_image(image)

        if image_is_local and image.startswith(IMAGE_TAG_PREFIX):
            LOG.debug("Using local image: %s", image)
            return

        try:
            self.pull_image(image)
        except DockerImagePullFailedException as ex:
            if not image_is_local:
                raise DockerImagePullFailedException(
                    f"Could not find {image} image locally and failed to pull it from docker."
                ) from ex

            LOG.info("Failed to download a new %s image. Building with the already downloaded image.", image)

    def pull_image(self, image: str) -> None:
        """
        Pulls ``image``, ``latest`` when it has no tag, printing a dot per progress line Docker reports

        Raises
        ------
        DockerImagePullFailedException
            When Docker can not pull the image
        """
        repository, tag = image, "latest"
        # a registry host may carry a port, only a colon in the last path segment starts the tag
        if ":" in image.rsplit("/", 1)[-1]:
            repository, tag = image.rsplit(":", 1)

        try:
            progress = self.docker_client.api.pull(repository, tag=tag, stream=True, decode=True)
        except docker.errors.APIError as ex:
            LOG.debug("Failed to download image %s:%s", repository, tag)
            raise DockerImagePullFailedException(str(ex)) from ex

        self._stream_writer.write_str(f"\nFetching {repository}:{tag} Docker container image...")
        for _ in progress:
            self._stream_writer.write_str(".")
        self._stream_writer.write_str("\n")

    def has_image(self, image: str) -> bool:
        try:
            self.docker_client.images.get(image)
            return True
        except docker.errors.ImageNotFound:
            return False
