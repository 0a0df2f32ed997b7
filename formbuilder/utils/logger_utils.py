import logging
from typing import Optional
from formbuilder.exceptions.custom_exception import CustomException, InternalError

# Single logger instance for the entire application
logger = logging.getLogger("formbuilder")


def log_info(context: str, message: str) -> None:
    """Log informational message with context"""
    logger.info(f"[{context}] {message}")


def log_warning(context: str, message: str) -> None:
    """Log warning message with context"""
    logger.warning(f"[{context}] {message}")


def handle_service_error(
    error: Exception,
    context: str,
    custom_exception: Optional[CustomException] = None
) -> None:
    """
    Handle service layer errors with logging

    Args:
        error: The exception that occurred
        context: Context information (e.g., 'create_form', 'submit_entry')
        custom_exception: Optional CustomException to raise; defaults to a generic InternalError

    Raises:
        CustomException
    """
    error_msg = str(error) if str(error) else error.__class__.__name__
    logger.error(f"[SERVICE ERROR] {context}: {error_msg}", exc_info=True)

    raise (custom_exception or InternalError()) from error


def handle_route_error(
    error: Exception,
    context: str
) -> None:

    if isinstance(error, CustomException) and error.status_code < 500:
        logger.info(f"[ROUTE] {context}: {error.status_code} {error.message}")
        raise error

    error_msg = str(error) if str(error) else error.__class__.__name__
    logger.error(f"[ROUTE ERROR] {context}: {error_msg}", exc_info=True)
    raise error


def handle_middleware_error(
    error: Exception,
    context: str,
    custom_exception: Optional[CustomException] = None
) -> None:

    error_msg = str(error) if str(error) else error.__class__.__name__
    logger.warning(f"[MIDDLEWARE ERROR] {context}: {error_msg}")

    if custom_exception:
        raise custom_exception
    raise error


def log_database_operation(
    operation: str,
    context: str,
    details: Optional[dict] = None
) -> None:

    message = f"[DB {operation}] {context}"
    if details:
        message += f" - {details}"
    logger.debug(message)
