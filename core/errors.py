"""
Error taxonomy for the seat monitor.

Field-level failures (SelectionNotFound, ControlMissing, TableMissing) are
logged by the component that hits them and never raised past it. Only
FatalRunError subclasses abort a run.

SessionLost is not a ProbeError, so no `except ProbeError` handler
absorbs it.
"""


class MonitorError(Exception):
    """Base class for every error raised by the monitor."""


class ConfigError(MonitorError):
    pass


class ProbeError(MonitorError):
    """A browser operation failed (detached element, closed page, timeout)."""


class NavigationInterrupted(ProbeError):
    """The page started reloading while an operation was in flight."""


class SelectionNotFound(MonitorError):
    def __init__(self, field_name: str, desired_label: str, attempts: int):
        self.field_name = field_name
        self.desired_label = desired_label
        self.attempts = attempts
        super().__init__(
            f"No option matching '{desired_label}' in {field_name} after {attempts} attempts"
        )


class ControlMissing(MonitorError):
    def __init__(self, description: str):
        self.description = description
        super().__init__(f"Control never appeared: {description}")


class TableMissing(MonitorError):
    pass


class FatalRunError(MonitorError):
    """The run cannot produce trustworthy results and must stop."""


class NavigationFailed(FatalRunError):
    pass


class SessionLost(FatalRunError):
    """The page, context or browser closed or crashed mid-run."""


class ContextNotEstablished(FatalRunError):
    def __init__(self, field_name: str, desired_label: str):
        self.field_name = field_name
        self.desired_label = desired_label
        super().__init__(f"Could not establish {field_name} = '{desired_label}'")


class NotifyFailed(MonitorError):
    def __init__(self, channel: str, reason: str):
        self.channel = channel
        self.reason = reason
        super().__init__(f"{channel}: {reason}")
