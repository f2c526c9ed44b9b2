"""Custom exceptions for Ruck Analytics."""


class RuckAnalyticsError(Exception):
    """Base exception for all Ruck Analytics errors."""

    pass


class InvalidParameterError(RuckAnalyticsError):
    """A tuning parameter was negative, non-finite or otherwise unusable."""

    def __init__(self, message: str = "Invalid parameter") -> None:
        self.message = message
        super().__init__(self.message)


class InvalidSampleError(RuckAnalyticsError):
    """A motion sample carried non-finite sensor values."""

    def __init__(self, message: str = "Invalid motion sample") -> None:
        self.message = message
        super().__init__(self.message)
