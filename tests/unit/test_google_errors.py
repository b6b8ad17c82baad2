import json
import socket

import httplib2
import pytest
from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

from calsync.core.exceptions import (
    CalendarAuthException,
    ExternalServiceException,
    RateLimitException,
    RemoteNotFoundException,
    ServiceTimeoutException,
)
from calsync.integrations.google.calendar import google_errors, translate_http_error


def _http_error(status, reason=None, body=None):
    if body is None:
        errors = [{"reason": reason}] if reason else []
        body = {"error": {"code": status, "errors": errors, "message": "x"}}
    return HttpError(httplib2.Response({"status": status}), json.dumps(body).encode("utf-8"))


class TestTranslateHttpError:
    @pytest.mark.parametrize(
        "error,expected",
        [
            (_http_error(404), RemoteNotFoundException),
            (_http_error(410, "deleted"), RemoteNotFoundException),
            (_http_error(429), RateLimitException),
            (_http_error(403, "userRateLimitExceeded"), RateLimitException),
            (_http_error(403, "rateLimitExceeded"), RateLimitException),
            (_http_error(401, "authError"), CalendarAuthException),
            (_http_error(403, "forbidden"), CalendarAuthException),
            (_http_error(400, body={"error": "invalid_grant"}), CalendarAuthException),
            (_http_error(500, "backendError"), ExternalServiceException),
            (_http_error(503), ExternalServiceException),
        ],
    )
    def test_status_and_reason_mapping(self, error, expected):
        translated = translate_http_error(error, "Update event")

        assert type(translated) is expected
        assert translated.details["status"] == int(error.resp.status)

    def test_unparseable_body(self):
        error = HttpError(httplib2.Response({"status": 502}), b"<html>bad gateway</html>")
        assert type(translate_http_error(error, "List events")) is ExternalServiceException


class TestGoogleErrorsContext:
    def test_http_error_is_translated(self):
        with pytest.raises(RemoteNotFoundException) as exc_info:
            with google_errors("Delete event"):
                raise _http_error(404)
        assert exc_info.value.message.startswith("Delete event")

    def test_refresh_error_is_an_auth_failure(self):
        with pytest.raises(CalendarAuthException):
            with google_errors("Insert event"):
                raise RefreshError("invalid_grant: Token has been expired or revoked.")

    def test_socket_timeout(self):
        with pytest.raises(ServiceTimeoutException):
            with google_errors("List events"):
                raise socket.timeout("timed out")

    def test_transport_error(self):
        with pytest.raises(ExternalServiceException):
            with google_errors("List events"):
                raise ConnectionResetError("reset by peer")
