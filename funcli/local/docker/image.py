"""
Builds images from generated Dockerfiles and copies files out of them
"""

import logging
import os
import pathlib
import sys
import tempfile
from typing import Dict, Iterable, Optional

import docker
import docker.errors

from funcli.lib.build.constants import FUN_DIR_NAME
from funcli.lib.build.exceptions import DockerBuildFailed, DockerConnectionError
from funcli.lib.utils.stream_writer import StreamWriter
from funcli.lib.utils.tar import create_tarball, extract_tarfile
from funcli.local.docker.exceptions import ImageCopyError
from funcli.local.docker.utils import get_docker_client, is_docker_reachable

LOG = logging.getLogger(__name__)


class ImageBuilder:
    """
    Thin layer over the Docker API that knows how to build an image for a function and how to pull paths out of the
    built image without running it.
    """

    def __init__(self, docker_client=None, stream_writer: Optional[StreamWriter] = None):
        self._docker_client = docker_client or get_docker_client()
        self._stream_writer = stream_writer or StreamWriter(sys.stderr, auto_flush=True)

    def build_image(self, context_dir: str, dockerfile_path: str, tag: str) -> str:
        """
        Build an image from ``dockerfile_path`` using ``context_dir`` as build context

        Parameters
        ----------
        context_dir : str
            Directory sent to Docker as build context, usually the function code directory. Its ``.fun``
            directory is left out
        dockerfile_path : str
            Path to the Dockerfile, it must live inside ``context_dir``
        tag : str
            Tag of the image

        Returns
        -------
        str
            Tag of the built image

        Raises
        ------
        DockerConnectionError
            When Docker is not running
        DockerBuildFailed
            When Docker fails to build the image
        """
        if not is_docker_reachable(self._docker_client):
            raise DockerConnectionError(msg=f"Building image {tag} requires Docker. is Docker running?")

        dockerfile = pathlib.Path(os.path.relpath(dockerfile_path, context_dir)).as_posix()
        LOG.debug("Building image %s from %s with context %s", tag, dockerfile, context_dir)

        # The fun directory holds build artifacts and local NAS content, none of it belongs to the image
        tar_paths = {
            os.path.join(context_dir, name): name for name in sorted(os.listdir(context_dir)) if name != FUN_DIR_NAME
        }

        with create_tarball(tar_paths) as tarballfile:
            try:
                (_, build_logs) = self._docker_client.images.build(
                    fileobj=tarballfile, custom_context=True, dockerfile=dockerfile, tag=tag, rm=True
                )
            except docker.errors.BuildError as ex:
                for log in ex.build_log or []:
                    self._write_build_log(log)
                LOG.error("Failed building image %s", tag)
                raise DockerBuildFailed(str(ex)) from ex
            except docker.errors.APIError as ex:
                raise DockerBuildFailed(f"Failed building image {tag}: {ex}") from ex

        for log in build_logs:
            self._write_build_log(log)

        return tag

    def _write_build_log(self, log: Dict[str, str]) -> None:
        if log.get("error"):
            raise DockerBuildFailed(log["error"])

        stream = log.get("stream") or log.get("status")
        if stream:
            self._stream_writer.write_str(stream if stream.endswith("\n") else stream + "\n")

    def copy_from_image(self, image: str, src_path: str, dest_dir: str) -> None:
        """
        Copy ``src_path`` from ``image`` into the host directory ``dest_dir``. A container is created from the image,
        never started, and removed once the copy is done.

        A ``src_path`` ending with ``/.`` copies the contents of the directory rather than the directory itself.

        Raises
        ------
        ImageCopyError
            When ``src_path`` does not exist in the image or Docker fails to hand it out
        """
        container = None
        LOG.debug("Copying from image: %s:%s -> %s", image, src_path, dest_dir)
        try:
            container = self._docker_client.containers.create(image, command=["true"])
            tar_stream, _ = container.get_archive(src_path)

            with tempfile.NamedTemporaryFile() as fp:
                _write_chunks(fp, tar_stream)

                # Seek the handle back to start of file for tarfile to use
                fp.seek(0)

                os.makedirs(dest_dir, exist_ok=True)
                extract_tarfile(file_obj=fp, unpack_dir=dest_dir)
        except docker.errors.NotFound as ex:
            raise ImageCopyError(f"{src_path} does not exist in image {image}") from ex
        except docker.errors.APIError as ex:
            raise ImageCopyError(f"Failed to copy {src_path} from image {image}: {ex}") from ex
        finally:
            if container:
                container.remove(force=True)


def _write_chunks(fp, chunks: Iterable[bytes]) -> None:
    for data in chunks:
        fp.write(data)
