"""
Records the modification times of the files a build depends on, so a later run can tell whether building again is
needed
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

from funcli.lib.build.template import FunctionBuildTarget

LOG = logging.getLogger(__name__)

META_FILES = [
    ".",
    "pom.xml",
    "package.json",
    "package-lock.json",
    "requirements.txt",
    "composer.json",
    os.path.join("src", "main", "java"),
]

FILE_MTIMES_KEY = "fileMtimes"
BUILD_OPS_KEY = "buildOps"


def collect_meta_paths(base_dir: str, targets: List[FunctionBuildTarget]) -> List[str]:
    """
    Returns the existing manifest paths of every target. A target whose CodeUri is missing is looked up in
    ``base_dir``.
    """
    abs_base_dir = os.path.abspath(base_dir)
    meta_paths = []

    for target in targets:
        code_uri = target.function_res.get("Properties", {}).get("CodeUri")
        abs_code_uri = os.path.abspath(os.path.join(abs_base_dir, code_uri)) if code_uri else abs_base_dir

        for meta_file in META_FILES:
            meta_path = os.path.normpath(os.path.join(abs_code_uri, meta_file))
            if os.path.exists(meta_path):
                meta_paths.append(meta_path)

    return meta_paths


def _get_mtimes(paths: List[str]) -> Dict[str, int]:
    return {os.path.abspath(path): int(os.path.getmtime(path) * 1000) for path in paths if os.path.exists(path)}


def record_mtimes(paths: List[str], build_ops: Dict[str, Any], meta_path: str) -> None:
    metadata = {FILE_MTIMES_KEY: _get_mtimes(paths), BUILD_OPS_KEY: build_ops}

    LOG.debug("Writing build metadata to %s", meta_path)
    with open(meta_path, "w", encoding="utf-8") as fp:
        json.dump(metadata, fp, indent=4)


def read_metadata(meta_path: str) -> Optional[Dict[str, Any]]:
    if not os.path.isfile(meta_path):
        return None

    with open(meta_path, "r", encoding="utf-8") as fp:
        try:
            return json.load(fp)
        except ValueError:
            LOG.debug("Build metadata %s is not valid JSON, ignoring it", meta_path)
            return None


def is_build_outdated(meta_path: str, paths: List[str], build_ops: Dict[str, Any]) -> bool:
    """
    Checks the recorded metadata against the current state of ``paths`` and the options of the coming build

    Returns
    -------
    bool
        True if no metadata was recorded, the options changed, or any of the files changed since the last build
    """
    metadata = read_metadata(meta_path)
    if not metadata:
        return True

    if metadata.get(BUILD_OPS_KEY) != build_ops:
        LOG.debug("Build options changed since the last build")
        return True

    return metadata.get(FILE_MTIMES_KEY) != _get_mtimes(paths)
