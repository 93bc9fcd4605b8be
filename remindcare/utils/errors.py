"""Error types raised by the reminder core."""


class RemindCareError(Exception):
    """Base error carrying a message that can be shown to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RemindCareError):
    """Bad user input, detected before any side effect."""


class NotificationError(RemindCareError):
    """A notification gateway call failed."""


class StoreError(RemindCareError):
    """A persistence call failed."""


class ReminderNotFound(StoreError):
    """The requested reminder does not exist for this user."""

    def __init__(self, reminder_id: str):
        super().__init__(f"reminder {reminder_id} not found")
        self.reminder_id = reminder_id
