"""Error types raised by the headline pipeline.

Only ConfigError and SourceUnavailable reach the caller as `success: false`.
RewriteUnavailable is always absorbed by the fallback composer.
"""

from typing import Literal, Optional


RewriteFailureKind = Literal[
    "transport",
    "status",
    "response",
    "parse",
    "fields",
    "alignment",
]


class NewsBriefError(RuntimeError):
    """Base class for pipeline errors."""


class ConfigError(NewsBriefError):
    """A required setting is missing."""


class SourceUnavailable(NewsBriefError):
    """The headline source failed or returned no usable articles."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RewriteUnavailable(NewsBriefError):
    """The rewrite service failed, or its output could not be used."""

    def __init__(self, message: str, kind: RewriteFailureKind) -> None:
        super().__init__(message)
        self.kind = kind
