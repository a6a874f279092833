class KnowledgeBaseError(Exception):
    """Base class for knowledge base failures."""


class ValidationError(KnowledgeBaseError):
    """
    A chunk or request was rejected before anything was written.
    """

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.errors = errors or []


class StorageError(KnowledgeBaseError):
    """The underlying store failed to read or commit."""
