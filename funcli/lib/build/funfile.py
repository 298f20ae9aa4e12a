"""
Resolves the Funfile of a function, converting legacy fun.yml files, and generates the Dockerfile built from it
"""

import logging
import os
from contextlib import contextmanager
from typing import Iterator, Optional

from funcli.lib.build import parser
from funcli.lib.build.constants import FUN_YML_NAME, FUNFILE_NAME, GENERATED_DOCKERFILE_NAME
from funcli.lib.utils import osutils

LOG = logging.getLogger(__name__)


def convert_fun_yml_to_funfile(fun_yml_path: str, funfile_path: str) -> None:
    generated_funfile = parser.fun_yml_to_funfile(fun_yml_path)

    with open(funfile_path, "w", encoding="utf-8") as fp:
        fp.write(generated_funfile)


def convert_funfile_to_dockerfile(
    funfile_path: str, dockerfile_path: str, runtime: str, service_name: str, function_name: str
) -> None:
    dockerfile_content = parser.funfile_to_dockerfile(funfile_path, runtime, service_name, function_name)

    with open(dockerfile_path, "w", encoding="utf-8") as fp:
        fp.write(dockerfile_content)


def get_or_convert_funfile(code_dir: str) -> Optional[str]:
    """
    Returns the path of the Funfile of the function whose code lives in ``code_dir``.

    A fun.yml without a Funfile next to it is converted once, the generated Funfile is kept in ``code_dir`` so any
    later call finds it and does not convert again.

    Parameters
    ----------
    code_dir : str
        Absolute path of the function code

    Returns
    -------
    Optional[str]
        Path of the Funfile, None if the function has neither a Funfile nor a fun.yml
    """
    funfile_path = os.path.join(code_dir, FUNFILE_NAME)
    fun_yml_path = os.path.join(code_dir, FUN_YML_NAME)

    funfile_exists = os.path.isfile(funfile_path)

    if not funfile_exists and os.path.isfile(fun_yml_path):
        LOG.info(
            "detecting %s but no %s, Fun will convert %s to %s", FUN_YML_NAME, FUNFILE_NAME, FUN_YML_NAME, FUNFILE_NAME
        )

        convert_fun_yml_to_funfile(fun_yml_path, funfile_path)
        funfile_exists = True

    return funfile_path if funfile_exists else None


@contextmanager
def generated_dockerfile(
    funfile_path: str, code_dir: str, runtime: str, service_name: str, function_name: str
) -> Iterator[str]:
    """
    Context manager that writes the Dockerfile generated from ``funfile_path`` into ``code_dir`` and yields its path.
    The Dockerfile is removed when the context exits, whether the image build succeeded or not.
    """
    dockerfile_path = os.path.join(code_dir, GENERATED_DOCKERFILE_NAME)
    try:
        convert_funfile_to_dockerfile(funfile_path, dockerfile_path, runtime, service_name, function_name)

        yield dockerfile_path
    finally:
        LOG.debug("Removing generated dockerfile %s", dockerfile_path)
        osutils.remove(dockerfile_path)
