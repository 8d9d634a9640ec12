import httpx
import pytest

from replyzy.agent.errors import (
    LLM_FORBIDDEN_ERROR_MESSAGE,
    AbortError,
    ChatModelAuthError,
    ChatModelBadRequestError,
    ChatModelForbiddenError,
    ErrorKind,
    RequestCancelledError,
    classify_error,
    raise_for_kind,
)
from replyzy.llm.router import ChatModelHTTPError


class AuthenticationError(Exception):
    pass


class BadRequestError(Exception):
    pass


def _status_error(code: int) -> httpx.HTTPStatusError:
    req = httpx.Request("POST", "https://llm.example/chat/completions")
    resp = httpx.Response(code, request=req)
    return httpx.HTTPStatusError("provider error", request=req, response=resp)


@pytest.mark.parametrize(
    "error, kind",
    [
        (ChatModelHTTPError(401, "Unauthorized", "{}"), ErrorKind.AUTHENTICATION),
        (AuthenticationError("nope"), ErrorKind.AUTHENTICATION),
        (RuntimeError("Incorrect API key provided"), ErrorKind.AUTHENTICATION),
        (_status_error(400), ErrorKind.BAD_REQUEST),
        (BadRequestError("x"), ErrorKind.BAD_REQUEST),
        (RuntimeError("Error code: 400 - invalid param"), ErrorKind.BAD_REQUEST),
        (AbortError(), ErrorKind.CANCELLED),
        (RuntimeError("The operation was aborted"), ErrorKind.CANCELLED),
        (_status_error(403), ErrorKind.FORBIDDEN),
        (RuntimeError("Request failed: 403 Forbidden"), ErrorKind.FORBIDDEN),
        (ValueError("Failed to validate planner output"), ErrorKind.UNCLASSIFIED),
        (RuntimeError("Server returned 500: Internal Server Error"), ErrorKind.UNCLASSIFIED),
    ],
)
def test_classify(error, kind):
    assert classify_error(error) is kind


def test_priority_first_match_wins():
    # matches authentication, bad-request and cancelled patterns at once
    err = RuntimeError("authentication failed with 400 after request was aborted")
    assert classify_error(err) is ErrorKind.AUTHENTICATION
    # bad-request beats cancelled and forbidden
    assert classify_error(RuntimeError("got 400 then aborted, 403 Forbidden")) is ErrorKind.BAD_REQUEST
    # cancelled beats forbidden
    assert classify_error(RuntimeError("aborted: 403 Forbidden")) is ErrorKind.CANCELLED


def test_typed_errors_keep_their_kind():
    assert classify_error(ChatModelForbiddenError(LLM_FORBIDDEN_ERROR_MESSAGE)) is ErrorKind.FORBIDDEN
    assert classify_error(ChatModelAuthError("x")) is ErrorKind.AUTHENTICATION
    assert classify_error(ChatModelBadRequestError("x")) is ErrorKind.BAD_REQUEST
    assert classify_error(RequestCancelledError("x")) is ErrorKind.CANCELLED


def test_non_exception_is_unclassified():
    assert classify_error("401 as a string") is ErrorKind.UNCLASSIFIED
    assert classify_error(None) is ErrorKind.UNCLASSIFIED


def test_raise_for_kind_forbidden_hides_provider_message():
    err = _status_error(403)
    with pytest.raises(ChatModelForbiddenError) as ei:
        raise_for_kind(ErrorKind.FORBIDDEN, err)
    assert str(ei.value) == LLM_FORBIDDEN_ERROR_MESSAGE
    assert ei.value.__cause__ is err


def test_raise_for_kind_keeps_message_and_cause():
    err = ChatModelHTTPError(401, "Unauthorized", "bad key")
    with pytest.raises(ChatModelAuthError, match="401 Unauthorized"):
        raise_for_kind(ErrorKind.AUTHENTICATION, err)
    with pytest.raises(RequestCancelledError):
        raise_for_kind(ErrorKind.CANCELLED, AbortError())


def test_raise_for_kind_unclassified_returns():
    assert raise_for_kind(ErrorKind.UNCLASSIFIED, ValueError("x")) is None
