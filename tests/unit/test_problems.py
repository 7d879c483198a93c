"""Unit tests for the error translator."""

import pytest
from starlette.requests import Request
from structlog.testing import capture_logs

from app.core.errors import ErrorKind, NotFoundError, TransportError, ValidationError, Violation
from app.services.problems import build_problem, status_for, upstream_error_handler


def _request(path: str) -> Request:
    return Request({"type": "http", "method": "GET", "path": path, "query_string": b"", "headers": []})


def test_every_error_kind_has_a_status():
    assert {kind: status_for(kind) for kind in ErrorKind} == {
        ErrorKind.TRANSPORT: 500,
        ErrorKind.NOT_FOUND: 404,
        ErrorKind.VALIDATION: 400,
    }


def test_build_problem_fields():
    problem = build_problem(_request("/some/path"), title="Boom", detail="More about boom")

    assert problem.type == "/some/path"
    assert problem.title == "Boom"
    assert problem.detail == "More about boom"
    assert problem.instance.startswith("urn:ERROR:")
    assert problem.invalid_params is None


def test_build_problem_mints_new_instance_each_time():
    request = _request("/some/path")

    instances = {build_problem(request, title="Boom").instance for _ in range(5)}

    assert len(instances) == 5


def test_build_problem_logs_warning_with_error_id():
    with capture_logs() as logs:
        problem = build_problem(_request("/x"), title="Boom")

    warnings = [entry for entry in logs if entry["event"] == "problem_in_request"]
    assert warnings[0]["log_level"] == "warning"
    assert problem.instance == f"urn:ERROR:{warnings[0]['error_id']}"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, status",
    [
        (TransportError("Upstream call failed: refused"), 500),
        (NotFoundError("Upstream responded with 404 Not Found"), 404),
        (ValidationError([Violation("summary", "too short (item 0)")]), 400),
    ],
)
async def test_upstream_error_handler(error, status):
    response = await upstream_error_handler(_request("/demo"), error)

    assert response.status_code == status
    assert response.media_type == "application/problem+json"


@pytest.mark.asyncio
async def test_validation_problem_lists_invalid_params():
    error = ValidationError(
        [Violation("temperatureCelsius", "too high (item 0)"), Violation("summary", "too short (item 1)")]
    )

    response = await upstream_error_handler(_request("/demo"), error)

    assert b'"invalidParams":[{"field":"temperatureCelsius"' in response.body
    assert b'"title":"temperatureCelsius: too high (item 0); summary: too short (item 1)"' in response.body


@pytest.mark.asyncio
async def test_non_validation_problem_omits_invalid_params():
    response = await upstream_error_handler(_request("/demo"), TransportError("refused"))

    assert b"invalidParams" not in response.body
