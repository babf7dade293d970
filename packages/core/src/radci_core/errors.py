"""Error taxonomy for a single broker event.

Only a few of these ever reach the broker. "No CI configured" is not an
error at all (the resolver returns None), comment failures are absorbed by
the comment state machine, and everything else that aborts the event is
reported through PipelineFatalError.
"""

from __future__ import annotations


class RadciError(Exception):
    """Base class for every error raised by radci_core."""


class ProtocolError(RadciError):
    """The broker request is malformed or uses an unsupported request/version/event type."""


class SourceControlError(RadciError):
    """The repository could not be materialized at the requested commit."""


class ResolverFatalError(RadciError):
    """CI setup resolution failed for a reason other than missing CI configuration."""


class ProviderQueryError(RadciError):
    """Querying GitHub for the commit or its workflow runs failed."""


class CommentError(RadciError):
    """Creating or editing a patch comment failed. Never fatal."""


class BrokerWriteError(RadciError):
    """A response could not be written to the broker channel."""


class PipelineFatalError(RadciError):
    """Wraps whatever aborted the event so the top level can report it uniformly."""

    def __init__(self, cause: BaseException):
        super().__init__(str(cause) or type(cause).__name__)
        self.cause = cause
