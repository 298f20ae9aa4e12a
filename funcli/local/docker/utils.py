"""
Helper methods that aid interactions within docker containers.
"""

import logging
import os

import docker
import requests

LOG = logging.getLogger(__name__)

DOCKER_API_VERSION_ENV_VAR = "DOCKER_API_VERSION"
DOCKER_MIN_API_VERSION = os.environ.get(DOCKER_API_VERSION_ENV_VAR, "1.35")


def get_docker_client():
    return docker.from_env(version=DOCKER_MIN_API_VERSION)


def is_docker_reachable(docker_client):
    """
    Checks if Docker daemon is running.

    :param docker_client : docker.from_env() - docker client object
    :returns True, if Docker is available, False otherwise.
    """
    try:
        docker_client.ping()
        return True
    except (docker.errors.APIError, requests.exceptions.ConnectionError) as ex:
        LOG.debug("Docker is not reachable", exc_info=ex)
        return False
