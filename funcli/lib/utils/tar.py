"""
Tarballs exchanged with Docker: build contexts sent to it and paths copied out of images
"""

import logging
import os
import tarfile
from contextlib import contextmanager
from tempfile import TemporaryFile
from typing import IO, Dict

LOG = logging.getLogger(__name__)


@contextmanager
def create_tarball(tar_paths: Dict[str, str]):
    """
    Context manager writing ``tar_paths`` into a temporary tarball, used as the build context sent to Docker

    Parameters
    ----------
    tar_paths : Dict[str, str]
        Path on the host mapped to its name inside the tarball

    Yields
    ------
    IO
        The tarball, positioned at its start
    """
    tarballfile = TemporaryFile()

    with tarfile.open(fileobj=tarballfile, mode="w") as archive:
        for path_on_system, path_in_tarball in tar_paths.items():
            archive.add(path_on_system, arcname=path_in_tarball)

    tarballfile.flush()
    tarballfile.seek(0)

    try:
        yield tarballfile
    finally:
        tarballfile.close()


def extract_tarfile(file_obj: IO[bytes], unpack_dir: str) -> None:
    """
    Extracts the archive read from ``file_obj`` into ``unpack_dir``. The archives come out of built images, none
    of their members may land outside ``unpack_dir``.

    Raises
    ------
    tarfile.ExtractError
        When a member path escapes ``unpack_dir``, nothing is extracted then
    """
    root = os.path.abspath(unpack_dir)

    with tarfile.open(fileobj=file_obj, mode="r") as tar:
        members = tar.getmembers()
        for member in members:
            target = os.path.abspath(os.path.join(root, member.name))
            if os.path.commonpath([root, target]) != root:
                raise tarfile.ExtractError(f"Archive member {member.name} escapes {unpack_dir}")

        LOG.debug("Extracting %d archive members into %s", len(members), root)
        tar.extractall(root)
