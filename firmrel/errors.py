"""
Exceptions raised by the release tooling
"""


class ReleaseError(Exception):
    """Base exception for release operations"""
    pass


class ValidationError(ReleaseError):
    """Raised for malformed or out-of-order version numbers and bad input"""
    pass


class ConflictError(ReleaseError):
    """Raised when the repository state does not allow the operation"""
    pass


class FormatMismatchError(ReleaseError):
    """Raised when an expected line pattern is not found in a target file"""
    pass


class ParseError(ReleaseError):
    """Raised when a captured value cannot be parsed"""
    pass


class InvalidPathError(ReleaseError):
    """Raised when a path escapes the repository root"""
    pass


class FileAccessError(ReleaseError, IOError):
    """Raised when a file cannot be read or written"""
    pass


class ExternalToolError(ReleaseError):
    """Raised when git, the GitHub API or another delegated tool fails"""
    pass
