"""
Docker container related exceptions
"""


class ImageCopyError(Exception):
    """
    Raised when a path can not be copied out of a built image
    """


class DockerImagePullFailedException(Exception):
    pass
