"""Custom exceptions for orgtree."""


class OrgTreeError(Exception):
    """Base class for orgtree errors."""


class SealedHeadlineError(OrgTreeError):
    """Raised when content or a child is attached to a sealed headline.

    A headline is sealed once the parser has found where its range ends.

    Attributes:
        headline_id: Id of the sealed headline
    """

    def __init__(self, headline_id: int):
        self.headline_id = headline_id
        super().__init__(f"Headline {headline_id} is sealed; its range has already ended")


class HeadlineNotFoundError(OrgTreeError):
    """Raised when no headline starts at the requested line."""

    def __init__(self, lnum: int):
        self.lnum = lnum
        super().__init__(f"No headline starts at line {lnum}")


class FileModifiedError(OrgTreeError):
    """Raised when a file is modified during an atomic write operation.

    This exception indicates that the file changed between the initial
    read and the final write, which could lead to data loss if the write
    were to proceed.

    Attributes:
        path: Path to the file that was modified
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str = "File was modified during write operation"):
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")
