class BuscaError(Exception):
    """Base class for every error raised by busca."""


class ConfigError(BuscaError):
    """
    Invalid or missing configuration: reference path, search path,
    glob pattern, or piped input. Fatal for the invocation.
    """


class ReferenceIoError(BuscaError):
    """The reference text could not be read after passing validation."""


class CandidateIoError(BuscaError):
    """
    A scanned file could not be opened or decoded as text.
    Always recovered by the scanner, the candidate is skipped.
    """

    def __init__(self, path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason
