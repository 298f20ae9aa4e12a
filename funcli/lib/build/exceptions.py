"""
Errors raised while building functions
"""


class BuildError(Exception):
    def __init__(self, wrapped_from: str, msg: str) -> None:
        self.wrapped_from = wrapped_from
        Exception.__init__(self, msg)


class CodeUriNotFoundError(BuildError):
    def __init__(self, code_uri: str) -> None:
        BuildError.__init__(self, "CodeUriNotFoundError", f"CodeUri {code_uri} is not exist.")


class FunfileConversionError(BuildError):
    def __init__(self, msg: str) -> None:
        BuildError.__init__(self, "FunfileConversionError", msg)


class DockerConnectionError(BuildError):
    def __init__(self, msg: str) -> None:
        BuildError.__init__(self, "DockerConnectionError", msg)


class DockerBuildFailed(BuildError):
    def __init__(self, msg: str) -> None:
        BuildError.__init__(self, "DockerBuildFailed", msg)


class BuildInsideContainerError(Exception):
    pass


class UnsupportedRuntimeError(Exception):
    pass


class InvalidNasConfigError(Exception):
    pass


class FunctionNotFoundError(Exception):
    pass


class InvalidFunctionPropertyError(Exception):
    pass
