"""Typed exception hierarchy for CLI-related errors."""

from src.wiki_client.errors import SyncError


class CLIError(SyncError):
    """Base exception for all CLI-related errors."""
    pass


class ConfigNotFoundError(CLIError):
    """Raised when an explicitly requested configuration file is not found."""

    def __init__(self, config_path: str):
        super().__init__(
            f"Configuration file not found at {config_path}"
        )
        self.config_path = config_path


class MissingRootError(CLIError):
    """Raised when neither the command line nor the config names a wiki root."""

    def __init__(self):
        super().__init__(
            "No wiki URL given: pass one as argument or set 'root' in the config file"
        )


class InitError(CLIError):
    """Raised when initialization fails."""

    def __init__(self, message: str):
        super().__init__(message)


class NotADocumentError(CLIError):
    """Raised when single-document mode is pointed at a node without a document."""

    def __init__(self, token: str, obj_type: str):
        super().__init__(
            f"Wiki node {token} is not a document (type '{obj_type or 'unknown'}'); "
            "drop --single to mirror its subtree"
        )
        self.token = token
        self.obj_type = obj_type
