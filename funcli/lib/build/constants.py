"""
build constants
"""

import os

FUNFILE_NAME = "Funfile"
FUN_YML_NAME = "fun.yml"
GENERATED_DOCKERFILE_NAME = ".Funfile.generated.dockerfile"

BUILD_STAGE = "build"
INSTALL_STAGE = "install"

# Working directory of fun inside a project, never part of the code shipped with a function
FUN_DIR_NAME = ".fun"
DEFAULT_ARTIFACTS_SUBDIR = os.path.join(FUN_DIR_NAME, "build", "artifacts")
DEFAULT_NAS_PATH_SUFFIX = os.path.join(FUN_DIR_NAME, "nas")

BUILT_TEMPLATE_NAME = "template.yml"
BUILD_META_NAME = "meta.json"

# Path inside the Funfile image where the function code and its installed dependencies live
CONTAINER_CODE_DIR = "/code"
CONTAINER_ARTIFACTS_DIR = "/artifactsMountPath"

IMAGE_TAG_PREFIX = "fun-cache-"
BUILD_IMAGE_REPOSITORY = "aliyunfc/runtime-{runtime}"
DEFAULT_BUILD_IMAGE_VERSION = "1.9.21"
BUILD_IMAGE_VERSION_ENV_VAR = "FUN_BUILD_IMAGE_VERSION"

# Runtimes whose CodeUri may point to an already compiled archive, in which case no compilation happens
COMPILED_ARCHIVE_RUNTIMES = ("java8", "java11")
COMPILED_ARCHIVE_SUFFIXES = (".zip", ".jar", ".war")


def get_build_image(runtime: str) -> str:
    """Name of the image used to build functions of the given runtime inside a container"""
    version = os.environ.get(BUILD_IMAGE_VERSION_ENV_VAR) or DEFAULT_BUILD_IMAGE_VERSION
    return "{}:build-{}".format(BUILD_IMAGE_REPOSITORY.format(runtime=runtime), version)
