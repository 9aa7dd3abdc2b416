# salestrend/exceptions.py
"""Error taxonomy for the sales aggregation service."""


class SalesTrendError(Exception):
    """Base exception for the service."""
    pass


class InputRejected(SalesTrendError):
    """Input that cannot be normalized.

    Individual bad rows never raise this; they are reported as rejected
    outcomes. It is raised when a whole upload is unusable, e.g. a CSV
    without a date/price/quantity column.
    """
    pass


class StorageFailure(SalesTrendError):
    """The atomic month-level write failed and was rolled back."""

    def __init__(self, year: int, month: int, cause: Exception = None):
        self.year = year
        self.month = month
        self.cause = cause
        message = f"Failed to store sales data for {year}-{month:02d}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ExternalInsightUnavailable(SalesTrendError):
    """The optional text-generation provider is unconfigured or failed."""
    pass


class NotFound(SalesTrendError):
    """No stored summary for the requested (user, year, month)."""

    def __init__(self, user_id: int, year: int, month: int):
        self.user_id = user_id
        self.year = year
        self.month = month
        super().__init__(f"Monthly data not found for user {user_id}: {year}-{month:02d}")
