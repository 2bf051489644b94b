"""Usage Stats — Collector Error Kinds.

Every database failure is translated into one of these at the database seam,
so the ingress route can map it to a status message instead of carrying on
with a missing key.
"""


class CollectorError(Exception):
    """Base class for failures while storing an upload."""

    status_code = 500
    default_message = "Error storing statistics"

    def __init__(self, message: str | None = None, detail: str = ""):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class DatabaseConnectionError(CollectorError):
    """The database could not be reached."""

    status_code = 503
    default_message = "Cannot connect to database"


class SchemaError(CollectorError):
    """Table creation failed."""

    status_code = 500
    default_message = "Error creating table"


class ConstraintViolationError(CollectorError):
    """A row could be neither found nor inserted under its natural key."""

    status_code = 409
    default_message = "Conflicting statistics record"


class StatementError(CollectorError):
    """Any other failed SELECT/INSERT."""

    status_code = 500
    default_message = "Error storing statistics"
