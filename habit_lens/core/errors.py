"""Error taxonomy for Habit Lens.

Every error raised by the core carries a stable ``code`` and the HTTP status
the API layer responds with. Validation problems are raised before any
network call; everything else is raised at the operation boundary and turned
into a user-facing message by the exception handler in ``habit_lens.main``.
"""


class HabitLensError(Exception):
    """Base class for all domain errors."""

    code = "error"
    status_code = 500
    persistent = False

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return "An unexpected error occurred"


class ValidationError(HabitLensError):
    """A field value or request attribute is malformed."""

    code = "validation_error"
    status_code = 422

    def __init__(self, message: str | None = None, field_id: str | None = None):
        self.field_id = field_id
        super().__init__(message)

    @classmethod
    def default_message(cls) -> str:
        return "Invalid value"


class AuthRequired(HabitLensError):
    code = "auth_required"
    status_code = 401

    @classmethod
    def default_message(cls) -> str:
        return "User not authenticated"


class NotFound(HabitLensError):
    code = "not_found"
    status_code = 404

    @classmethod
    def default_message(cls) -> str:
        return "Record not found"


class NoData(HabitLensError):
    code = "no_data"
    status_code = 409

    @classmethod
    def default_message(cls) -> str:
        return "No data available for analysis"


class MissingCredential(HabitLensError):
    """No OpenAI API key configured. Clients show this as a standing banner."""

    code = "missing_credential"
    status_code = 412
    persistent = True

    @classmethod
    def default_message(cls) -> str:
        return "Please configure your OpenAI API key in settings to use the analysis feature."


class SessionBusy(HabitLensError):
    code = "session_busy"
    status_code = 409

    @classmethod
    def default_message(cls) -> str:
        return "An analysis request is already in progress"


class TransportError(HabitLensError):
    """Network or LLM provider failure."""

    code = "transport_error"
    status_code = 502

    @classmethod
    def default_message(cls) -> str:
        return "Could not reach the remote service"


class PersistenceError(HabitLensError):
    code = "persistence_error"
    status_code = 503

    @classmethod
    def default_message(cls) -> str:
        return "Failed to read or write data"
