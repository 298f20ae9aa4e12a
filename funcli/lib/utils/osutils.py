"""
File system helpers shared by the build steps
"""

import logging
import os
import shutil
import stat
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Union

LOG = logging.getLogger(__name__)

# Artifacts directories are readable by everyone but only writable by their owner
BUILD_DIR_PERMISSIONS = 0o755


@contextmanager
def mkdir_temp(mode=BUILD_DIR_PERMISSIONS, ignore_errors=False):
    """
    Yields the path of a new temporary directory, removed together with its content when the block exits

    Parameters
    ----------
    mode : int
        Permissions of the directory
    ignore_errors : bool
        Read-only entries are made writable and removed again, anything still failing is logged at debug level
        instead of raised. Package managers leave read-only files behind in their caches.
    """
    temp_dir = tempfile.mkdtemp()
    try:
        os.chmod(temp_dir, mode)
        yield temp_dir
    finally:
        if ignore_errors:
            shutil.rmtree(temp_dir, False, _force_remove)
        else:
            shutil.rmtree(temp_dir)


def _force_remove(function, path, excinfo):
    try:
        os.chmod(path, stat.S_IWRITE)
        os.remove(path)
    except OSError:
        LOG.debug("%s failed to remove %s: %s", function, path, excinfo)


def empty_directory(path: Union[str, Path]) -> None:
    """
    Leaves ``path`` as an existing, empty directory. The directory itself is kept, mounts and open handles on it
    stay valid.
    """
    dir_path = Path(path)
    if not dir_path.exists():
        dir_path.mkdir(mode=BUILD_DIR_PERMISSIONS, parents=True)
        return

    for child in dir_path.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()


def remove(path):
    if not path:
        return

    try:
        os.remove(path)
    except FileNotFoundError:
        LOG.debug("%s was already removed", path)


def copytree(source, destination, ignore=None):
    """
    Copies the content of ``source`` into ``destination``. Unlike a plain ``shutil.copytree`` an existing
    ``destination`` is merged into, several functions contribute to the same NAS folder and dependencies are merged
    into the function code.

    ``ignore`` follows the ``shutil.copytree`` contract, e.g. ``shutil.ignore_patterns(".fun")``.
    """
    shutil.copytree(source, destination, ignore=ignore, dirs_exist_ok=True)
