from .errors import ConfigurationError, LogMergeViewError, PerFileParseError

__version__ = "0.1.0"
