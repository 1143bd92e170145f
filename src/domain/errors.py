"""
Domain error taxonomy shared by the application and infrastructure layers.
"""


class DashboardError(Exception):
    """Base class for every error raised by this package."""


class SnapshotFetchError(DashboardError):
    """The one-shot price snapshot request failed (network or parse)."""


class ChannelError(DashboardError):
    """The live-update channel reported a transport error."""


class MalformedUpdateError(DashboardError):
    """An inbound update payload could not be decoded into symbol -> price."""


class OrderSubmissionError(DashboardError):
    """The order gateway could not create or list orders."""
