"""
Error taxonomy for the planning agent.
What it defines:
- Typed failures propagated to the caller (auth, bad request, forbidden, cancelled)
- AbortError, raised when the cancellation signal fires
- classify_error(): ordered predicate chain over an opaque exception

And, the main purpose:
Tell user-fixable and cancelled conditions apart from ordinary step failures.
"""


from enum import Enum
from typing import Any, Callable, Optional

LLM_FORBIDDEN_ERROR_MESSAGE = (
    "Access denied (403 Forbidden). Please check:\n\n"
    "1. Your provider credentials have the required permissions\n\n"
    "2. The selected model is enabled for your provider account"
)


class ErrorKind(str, Enum):
    AUTHENTICATION = "authentication"
    BAD_REQUEST = "bad_request"
    CANCELLED = "cancelled"
    FORBIDDEN = "forbidden"
    UNCLASSIFIED = "unclassified"


class AbortError(Exception):
    def __init__(self, message: str = "Request was aborted"):
        super().__init__(message)


class ChatModelAuthError(RuntimeError):
    pass


class ChatModelBadRequestError(RuntimeError):
    pass


class ChatModelForbiddenError(RuntimeError):
    pass


class RequestCancelledError(RuntimeError):
    pass


class ResponseParseError(RuntimeError):
    pass


class ServerPlanError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


# structural capabilities

def _status_code(error: BaseException) -> Optional[int]:
    code = getattr(error, "status_code", None)
    if code is None:
        response = getattr(error, "response", None)
        code = getattr(response, "status_code", None)
    return code if isinstance(code, int) else None


def _names(error: BaseException) -> set[str]:
    return {cls.__name__ for cls in type(error).__mro__}


def _message(error: BaseException) -> str:
    return str(error) or ""


# predicates, checked in order

def is_authentication_error(error: BaseException) -> bool:
    if isinstance(error, ChatModelAuthError):
        return True
    if _status_code(error) == 401 or "AuthenticationError" in _names(error):
        return True
    msg = _message(error)
    low = msg.lower()
    return "authentication" in low or " 401" in msg or "api key" in low


def is_bad_request_error(error: BaseException) -> bool:
    if isinstance(error, ChatModelBadRequestError):
        return True
    if _status_code(error) == 400 or "BadRequestError" in _names(error):
        return True
    msg = _message(error)
    return " 400" in msg or "badrequest" in msg.lower()


def is_aborted_error(error: BaseException) -> bool:
    if isinstance(error, (AbortError, RequestCancelledError)) or "AbortError" in _names(error):
        return True
    return "aborted" in _message(error).lower()


def is_forbidden_error(error: BaseException) -> bool:
    if isinstance(error, ChatModelForbiddenError):
        return True
    if _status_code(error) == 403:
        return True
    msg = _message(error)
    return " 403" in msg and "Forbidden" in msg


_CHAIN: list[tuple[Callable[[BaseException], bool], ErrorKind]] = [
    (is_authentication_error, ErrorKind.AUTHENTICATION),
    (is_bad_request_error, ErrorKind.BAD_REQUEST),
    (is_aborted_error, ErrorKind.CANCELLED),
    (is_forbidden_error, ErrorKind.FORBIDDEN),
]


def classify_error(error: Any) -> ErrorKind:
    if not isinstance(error, BaseException):
        return ErrorKind.UNCLASSIFIED
    for predicate, kind in _CHAIN:
        if predicate(error):
            return kind
    return ErrorKind.UNCLASSIFIED


def raise_for_kind(kind: ErrorKind, error: BaseException) -> None:
    """Raise the typed failure for a classified error. UNCLASSIFIED returns."""
    message = _message(error)
    if kind is ErrorKind.AUTHENTICATION:
        raise ChatModelAuthError(message) from error
    if kind is ErrorKind.BAD_REQUEST:
        raise ChatModelBadRequestError(message) from error
    if kind is ErrorKind.CANCELLED:
        raise RequestCancelledError(message or "Request cancelled") from error
    if kind is ErrorKind.FORBIDDEN:
        raise ChatModelForbiddenError(LLM_FORBIDDEN_ERROR_MESSAGE) from error
