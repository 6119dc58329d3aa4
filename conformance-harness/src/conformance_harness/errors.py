from __future__ import annotations


class ConformanceError(RuntimeError):
    pass


class ConfigurationError(ConformanceError):
    """The suite was constructed (or set up) with unusable inputs."""


class ConcurrentRunError(ConformanceError):
    pass


class NotReadyError(ConformanceError):
    pass


class DuplicateTestError(ConformanceError):
    pass


class ConfigFileError(ConfigurationError):
    pass


class ProfileNotFoundError(ConformanceError):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = str(name)

    def __str__(self) -> str:
        return f"unknown conformance profile: {self.name!r}"
