"""Exception types raised by the uptime core."""


class ConfigError(RuntimeError):
    """The configuration file is missing, unreadable or invalid."""


class ThresholdOverflowError(ArithmeticError):
    """The merge threshold (or a time shifted by it) does not fit in a datetime."""


class OutOfOrderObservationError(ValueError):
    """An observation is older than the open run it would be appended to."""

    def __init__(self, website: str, observed_at, open_run_end):
        self.website = website
        self.observed_at = observed_at
        self.open_run_end = open_run_end
        super().__init__(
            f"observation for {website!r} at {observed_at.isoformat()} "
            f"precedes the open run ending at {open_run_end.isoformat()}"
        )


class MigrationError(RuntimeError):
    """Converting the legacy check log into runs failed; nothing was committed."""
