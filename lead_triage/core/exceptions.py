"""
Exception types raised by the pipeline and its collaborators.
"""


class PipelineError(Exception):
    """Base class for pipeline failures."""


class IngestionError(PipelineError):
    """
    The mail fetch failed.

    ``items`` holds the messages already fetched and marked consumed before
    the failure. They are not fetched again, so the caller must still
    enqueue them.
    """

    def __init__(self, message: str = "", items=None):
        super().__init__(message)
        self.items = list(items or [])


class ConnectivityError(IngestionError):
    """The mail server could not be reached or refused the login."""


class ProtocolError(IngestionError):
    """The mail server answered a command with a failure status."""


class PersistenceError(PipelineError):
    """A finalized record could not be written to the sink."""


class MalformedJobError(PipelineError):
    """A job is missing data required before classification."""
