import traceback
from typing import Optional

from core.logger import logging


class WikiError(Exception):
    """Base class for errors the web layer turns into an HTTP status"""

    status_code = 500


class DatabaseConnectionError(WikiError):
    """The pool could not hand out a connection (unreachable store, exhausted, timeout)"""


class QueryError(WikiError):
    """A statement failed: malformed SQL, constraint violation or timeout"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class DuplicateNameError(QueryError):
    status_code = 409


class NotFoundError(QueryError):
    status_code = 404


class TemplateError(WikiError):
    """A view template is missing or raised while rendering"""


class BadRequestError(WikiError):
    status_code = 400


def handle_exception(
    e: BaseException,
    message: str = "An error occurred",
    source: str = "app",
):
    """
    Handle exception with logging
    Args:
        e: The exception
        message: Custom error message
        source: Source of the error (db/web/startup)
    """
    # Get full traceback
    error_traceback = "".join(traceback.format_tb(e.__traceback__))

    # Get original error location (for brief display)
    tb = traceback.extract_tb(e.__traceback__)
    if tb:
        error_location = f'File "{tb[-1].filename}", line {tb[-1].lineno}, in {tb[-1].name}'
    else:
        error_location = "unknown"

    # Combine error message
    error_message = (
        f"{message}: {str(e)}\n"
        f"Location: {error_location}\n"
        f"Full traceback:\n{error_traceback}"
    )

    # Log the error directly using error logger with source
    extra = {"source": source}
    logging.error(error_message, extra=extra)
