"""
Exceptions raised by the import and reconciliation engine.
"""


class ReconciliationException(Exception):
    """Base exception for import/reconciliation errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message


class ConfigError(ReconciliationException):
    """Raised for a missing game id, malformed input, or unusable settings."""


class ExternalServiceError(ReconciliationException):
    """Raised when the external service is unreachable or returns a bad response."""
    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"speedrun.com request failed during {operation}: {details}",
            "Failed to fetch data from speedrun.com. Please try again later."
        )
        self.operation = operation


class MappingError(ReconciliationException):
    """Raised when taxonomy mapping cannot be built."""
    def __init__(self, details: str):
        super().__init__(
            f"Failed to create mappings: {details}",
            "Could not map speedrun.com categories and platforms to this leaderboard."
        )


class RecordError(ReconciliationException):
    """Raised for a single candidate record that cannot be imported."""
    def __init__(self, run_id: str, reason: str):
        super().__init__(f"Run {run_id}: {reason}")
        self.run_id = run_id
        self.reason = reason


class ReconciliationError(ReconciliationException):
    """Raised when autoclaim cannot be completed for an account."""
    def __init__(self, username: str, details: str):
        super().__init__(f"Error claiming for {username}: {details}")
        self.username = username
