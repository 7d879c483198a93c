"""Translation of failures into RFC7807 problem details.

Every failed request, whichever client produced the failure, is answered with
the same ``application/problem+json`` document. The status depends only on
the error kind.
"""

import uuid

from fastapi import Request
from fastapi.responses import JSONResponse
from prometheus_client import Counter

from app.core.errors import ErrorKind, UpstreamError, Violation
from app.core.logging import get_logger
from app.models.problem import InvalidParam, ProblemDetail

logger = get_logger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"

PROBLEMS_EMITTED = Counter(
    "forecast_client_problems_total",
    "Total number of problem documents returned",
    ["kind"],
)

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.TRANSPORT: 500,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION: 400,
}


def status_for(kind: ErrorKind) -> int:
    """HTTP status for an error kind."""
    return _STATUS_BY_KIND[kind]


def build_problem(
    request: Request,
    title: str,
    detail: str | None = None,
    violations: tuple[Violation, ...] = (),
) -> ProblemDetail:
    """Build a problem document with a freshly minted instance id.

    Args:
        request: The inbound request; its path becomes the problem type
        title: Message of the underlying failure
        detail: Optional longer explanation
        violations: Field violations, only for validation failures

    Returns:
        The problem document
    """
    error_id = uuid.uuid4()

    logger.warning(
        "problem_in_request",
        error_id=str(error_id),
        path=request.url.path,
        title=title,
    )

    return ProblemDetail(
        type=request.url.path,
        title=title,
        instance=f"urn:ERROR:{error_id}",
        detail=detail,
        invalid_params=[InvalidParam(field=v.field, reason=v.reason) for v in violations]
        or None,
    )


def problem_response(problem: ProblemDetail, status_code: int) -> JSONResponse:
    """Render a problem document."""
    return JSONResponse(
        status_code=status_code,
        content=problem.model_dump(by_alias=True, exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
    )


async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    """Exception handler for every failure of an outbound forecast call."""
    PROBLEMS_EMITTED.labels(kind=exc.kind.value).inc()

    problem = build_problem(
        request,
        title=exc.message,
        detail=exc.detail,
        violations=exc.violations,
    )
    return problem_response(problem, status_for(exc.kind))


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler so callers never see a raw stack trace."""
    logger.error("unhandled_exception", error=str(exc), path=request.url.path, exc_info=exc)
    PROBLEMS_EMITTED.labels(kind="unexpected").inc()

    problem = build_problem(request, title=str(exc) or type(exc).__name__)
    return problem_response(problem, 500)
