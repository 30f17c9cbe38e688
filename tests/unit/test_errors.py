"""Tests for error module."""

import json

import pytest

from callai_stream.errors import (
    CallAiError,
    ErrorClass,
    ErrorContext,
    PipelineError,
    RemoteError,
    classify_http_error,
    extract_error_message,
    is_invalid_model_error,
)


class TestErrorContext:
    """Tests for ErrorContext."""

    def test_empty_context(self) -> None:
        """Test empty context string representation."""
        assert str(ErrorContext()) == ""

    def test_context_with_source(self) -> None:
        """Test context with source only."""
        assert str(ErrorContext(source="pipeline")) == "[pipeline]"

    def test_context_with_details(self) -> None:
        """Test details follow the source."""
        ctx = ErrorContext(source="client", details={"status_code": 200})
        assert str(ctx) == "[client] (status_code=200)"

    def test_details_without_source_hidden(self) -> None:
        """Test details alone do not decorate the message."""
        assert str(ErrorContext(details={"a": 1})) == ""


class TestCallAiError:
    """Tests for base error class."""

    def test_basic_error(self) -> None:
        """Test basic error creation."""
        error = CallAiError("Something went wrong")
        assert error.message == "Something went wrong"
        assert str(error) == "Something went wrong"

    def test_error_with_context(self) -> None:
        """Test error with context."""
        error = CallAiError("Failed", ErrorContext(source="test", details={"k": "v"}))
        assert str(error) == "Failed [test] (k=v)"
        assert error.message == "Failed"


class TestPipelineError:
    """Tests for PipelineError."""

    def test_stage_recorded(self) -> None:
        """Test the stage name lands in the context."""
        error = PipelineError("bad encoding", stage="lines")
        assert error.stage == "lines"
        assert error.context.details["stage"] == "lines"
        assert str(error) == "bad encoding [pipeline] (stage=lines)"
        assert isinstance(error, CallAiError)


class TestRemoteError:
    """Tests for RemoteError."""

    def test_from_json_response(self) -> None:
        """Test creation from a JSON error body."""
        body = json.dumps({"error": {"message": "Rate limit exceeded", "code": 429}})
        error = RemoteError.from_response(429, body, {"x-request-id": "req-1"})

        assert error.status_code == 429
        assert error.error_class is ErrorClass.RATE_LIMITED
        assert error.message == "Rate limit exceeded"
        assert error.raw_error["error"]["code"] == 429
        assert error.body_text == body
        assert error.request_id == "req-1"

    def test_request_id_header_case(self) -> None:
        """Test request id headers are matched case-insensitively."""
        error = RemoteError.from_response(500, "", {"X-Request-Id": "req-2"})
        assert error.request_id == "req-2"
        assert error.context.details["request_id"] == "req-2"

    def test_from_text_response(self) -> None:
        """Test a non-JSON body is kept verbatim and used as message."""
        error = RemoteError.from_response(502, "Bad Gateway\n")
        assert error.raw_error == {}
        assert error.body_text == "Bad Gateway\n"
        assert error.message == "Bad Gateway"
        assert error.error_class is ErrorClass.SERVER_ERROR

    def test_json_array_body(self) -> None:
        """Test a JSON body that is not an object is treated as text."""
        error = RemoteError.from_response(500, "[1, 2]")
        assert error.raw_error == {}
        assert error.message == "[1, 2]"

    def test_from_empty_response(self) -> None:
        """Test an empty body falls back to the status line."""
        assert RemoteError.from_response(500).message == "HTTP 500"

    def test_invalid_model(self) -> None:
        """Test the invalid-model signature."""
        body = json.dumps({"error": {"message": "foo/bar is not a valid model ID", "code": 400}})
        error = RemoteError.from_response(400, body)
        assert error.error_class is ErrorClass.INVALID_MODEL
        assert error.is_invalid_model

    @pytest.mark.parametrize("status_code", [500, 502, 503])
    def test_server_errors_are_not_model_errors(self, status_code: int) -> None:
        """Test server failures never look like a rejected model."""
        error = RemoteError.from_response(status_code, "model overloaded")
        assert not error.is_invalid_model

    def test_auth_error(self) -> None:
        """Test 401 classification."""
        error = RemoteError.from_response(401, '{"error": {"message": "No auth credentials found"}}')
        assert error.error_class is ErrorClass.AUTHENTICATION
        assert not error.is_invalid_model
        assert error.context.details["status_code"] == 401


class TestIsInvalidModelError:
    """Tests for invalid-model detection."""

    def test_not_a_valid_model(self) -> None:
        """Test the OpenRouter message."""
        body = {"error": {"message": "gpt-99 is not a valid model ID"}}
        assert is_invalid_model_error(400, body)

    def test_model_not_found_code(self) -> None:
        """Test the OpenAI error code."""
        body = {"error": {"message": "The requested resource does not exist", "code": "model_not_found"}}
        assert is_invalid_model_error(404, body)

    def test_plain_text_body(self) -> None:
        """Test detection from a raw body."""
        assert is_invalid_model_error(400, None, "Invalid model: foo")

    def test_wrong_status(self) -> None:
        """Test other statuses never match."""
        body = {"error": {"message": "gpt-99 is not a valid model ID"}}
        assert not is_invalid_model_error(500, body)

    def test_unrelated_bad_request(self) -> None:
        """Test a 400 about something else."""
        body = {"error": {"message": "messages must not be empty"}}
        assert not is_invalid_model_error(400, body)

    def test_does_not_exist_without_model(self) -> None:
        """Test generic not-found text needs a model mention."""
        assert not is_invalid_model_error(404, None, "route does not exist")


class TestClassifyHttpError:
    """Tests for HTTP error classification."""

    def test_status_codes(self) -> None:
        """Test classification by status code."""
        assert classify_http_error(400) == ErrorClass.INVALID_REQUEST
        assert classify_http_error(401) == ErrorClass.AUTHENTICATION
        assert classify_http_error(402) == ErrorClass.QUOTA_EXHAUSTED
        assert classify_http_error(403) == ErrorClass.PERMISSION_DENIED
        assert classify_http_error(404) == ErrorClass.NOT_FOUND
        assert classify_http_error(429) == ErrorClass.RATE_LIMITED
        assert classify_http_error(500) == ErrorClass.SERVER_ERROR
        assert classify_http_error(503) == ErrorClass.OVERLOADED

    def test_unknown_ranges(self) -> None:
        """Test unmapped statuses fall back by range."""
        assert classify_http_error(418) == ErrorClass.INVALID_REQUEST
        assert classify_http_error(599) == ErrorClass.SERVER_ERROR
        assert classify_http_error(302) == ErrorClass.OTHER

    def test_quota_from_message(self) -> None:
        """Test a 429 about credits is quota, not rate limiting."""
        body = {"error": {"message": "Insufficient credits"}}
        assert classify_http_error(429, body) == ErrorClass.QUOTA_EXHAUSTED


class TestExtractErrorMessage:
    """Tests for error message extraction."""

    def test_nested(self) -> None:
        """Test OpenAI style."""
        assert extract_error_message({"error": {"message": "boom"}}) == "boom"

    def test_flat(self) -> None:
        """Test simple shapes."""
        assert extract_error_message({"error": "boom"}) == "boom"
        assert extract_error_message({"message": "boom"}) == "boom"
        assert extract_error_message({"detail": "boom"}) == "boom"

    def test_missing(self) -> None:
        """Test no message."""
        assert extract_error_message(None) is None
        assert extract_error_message({"status": 1}) is None
