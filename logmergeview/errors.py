class LogMergeViewError(Exception):
    """Base class for errors reported by logmergeview."""


class ConfigurationError(LogMergeViewError):
    """
    Raised when the merge configuration cannot be used (empty color palette,
    timestamp regex that does not compile, etc.). Aborts the whole merge.
    """


class PerFileParseError(LogMergeViewError):
    """
    A single input file could not be decoded or scanned. The file is left out
    of the merge, and the other files proceed.
    """
    def __init__(self, filename: str, message: str):
        super().__init__(f"{filename}: {message}")
        self.filename = filename
        self.message = message
