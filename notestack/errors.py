"""
errors.py: Error taxonomy and the response envelope.

Every operation answers with ``{success, msg, data?, error?}``. Services raise
the exceptions below; the handlers registered in ``main.py`` turn them into
envelopes with the matching HTTP status.
"""


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, msg: str, error: str | None = None):
        super().__init__(msg)
        self.msg = msg
        self.error = error


class ValidationError(AppError):
    """Missing or malformed required field."""

    status_code = 400


class NotFoundOrForbidden(AppError):
    """
    Entity missing OR owned by another user.

    Both cases carry the same message so callers can never learn that a row
    exists under someone else's account.
    """

    status_code = 404

    def __init__(self, entity: str):
        super().__init__(f"{entity} not found")
        self.entity = entity


class DuplicateError(AppError):
    status_code = 409


class ConflictAdvisory(AppError):
    """Scheduling overlap. A soft business rule: 200 with success=false."""

    status_code = 200

    def __init__(self, msg: str = "This time slot is already occupied"):
        super().__init__(msg)


def envelope(msg: str = "", data: dict | None = None, success: bool = True, error: str | None = None) -> dict:
    body = {"success": success, "msg": msg}
    if data is not None:
        body["data"] = data
    if error is not None:
        body["error"] = error
    return body
