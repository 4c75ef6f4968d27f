"""LeaveFlow: leave balance and approval engine over an embedded or remote store."""

__version__ = "1.0.0"
