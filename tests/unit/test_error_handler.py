"""
Unit tests for error handler middleware
"""
import json

import pytest
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from student_registry.errors import (
    BulkImportError,
    DuplicateKey,
    Forbidden,
    NotFound,
    UpstreamUnavailable,
    ValidationError,
)
from student_registry.middleware.error_handler import error_handler


def _request():
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/students/S1",
        "query_string": b"",
        "headers": [],
    })


def _body(response):
    return json.loads(response.body.decode())


class TestErrorHandler:
    """Test error handler middleware"""

    @pytest.mark.parametrize(
        "exc, status_code, message",
        [
            (ValidationError(), 400, "Missing required field(s)"),
            (DuplicateKey(), 400, "Student id already exists"),
            (Forbidden(), 403, "Forbidden. Admins only."),
            (NotFound(), 404, "Student not found"),
            (UpstreamUnavailable(), 500, "Record store unavailable"),
            (BulkImportError(), 500, "Error processing CSV file"),
        ],
    )
    def test_registry_errors(self, exc, status_code, message):
        """Each domain error maps to its status and default message"""
        response = error_handler(_request(), exc)

        assert isinstance(response, JSONResponse)
        assert response.status_code == status_code
        assert _body(response) == {"message": message}

    def test_custom_message(self):
        response = error_handler(_request(), ValidationError("No file uploaded."))
        assert _body(response) == {"message": "No file uploaded."}

    def test_http_exception(self):
        response = error_handler(_request(), HTTPException(status_code=405, detail="Method Not Allowed"))
        assert response.status_code == 405
        assert _body(response) == {"message": "Method Not Allowed"}

    def test_request_validation_error_is_400(self):
        response = error_handler(_request(), RequestValidationError([]))
        assert response.status_code == 400
        assert _body(response) == {"message": "Invalid request body"}

    def test_generic_exception_hides_details(self):
        """Unexpected failures never leak their message"""
        response = error_handler(_request(), ValueError("secret internals"))

        assert response.status_code == 500
        assert _body(response) == {"message": "Server error"}
