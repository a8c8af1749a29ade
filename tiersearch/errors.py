"""
Error taxonomy for the search engine.

Library code raises these; only the command-line entry points decide to exit.
"""


class SearchEngineError(Exception):
    """Base class for every error raised by the package."""


# (a) input files that do not match their grammar

class MalformedInputError(SearchEngineError, ValueError):
    """A manifest, corpus record, index or VSM file is structurally invalid."""

    def __init__(self, message: str, path=None, line_no: int | None = None) -> None:
        location = ""
        if path is not None:
            location = f"{path}"
            if line_no is not None:
                location += f":{line_no}"
            location += ": "
        super().__init__(location + message)
        self.path = path
        self.line_no = line_no


class ManifestFormatError(MalformedInputError):
    pass


class RecordFormatError(MalformedInputError):
    pass


class IndexFormatError(MalformedInputError):
    pass


class VsmFormatError(MalformedInputError):
    pass


# (b) builder/caller contract violations

class ContractViolationError(SearchEngineError):
    """A precondition of the term or vector model was broken by its caller."""


class DuplicateDocumentError(ContractViolationError):
    pass


class MissingDocumentError(ContractViolationError):
    pass


class DuplicatePositionError(ContractViolationError):
    pass


class EmptyPostingsError(ContractViolationError):
    pass


# (c) recoverable query errors

class InvalidQueryError(SearchEngineError, ValueError):
    """The query text does not follow the query syntax."""

    def __init__(self, query: str, reason: str = "") -> None:
        message = f"The query '{query}' is invalid."
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.query = query
        self.reason = reason


class IndexNotLoadedError(SearchEngineError):
    """A positional query needs the tiered index, but only VSMs were loaded."""
