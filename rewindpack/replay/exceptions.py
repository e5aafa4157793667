"""Replay subsystem exceptions."""


class ReplayError(Exception):
    """Base class for replay errors."""


class ReplayConfigError(ReplayError):
    """Invalid replay configuration or parameters."""


class EventNotFoundError(ReplayError, LookupError):
    """The replay target is absent from the event log."""

    def __init__(self, event_id: str) -> None:
        self.event_id = event_id
        super().__init__(f"No events found for replay from: {event_id}")


class ReplayTimeoutError(ReplayError, TimeoutError):
    """A model router call exceeded the configured replay timeout."""

    def __init__(self, event_id: str, timeout_seconds: float) -> None:
        self.event_id = event_id
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Model router call for event {event_id} exceeded {timeout_seconds:g}s timeout"
        )
