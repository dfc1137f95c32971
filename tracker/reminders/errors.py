# tracker/reminders/errors.py


class ReminderError(Exception):
    pass


class RepositoryError(ReminderError):
    """The data store rejected or failed a query."""


class NotificationError(ReminderError):
    """Transport-level failure while delivering a notification."""
