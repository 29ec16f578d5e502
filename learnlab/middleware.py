"""
HTTP middleware for the LearnLab backend: request tracing and JSON body enforcement.
"""
import uuid
import logging
from datetime import datetime, timezone

from fastapi import Request, status
from fastapi.responses import JSONResponse

from learnlab.models import ErrorResponse, error_payload
from learnlab.services.logging_service import RequestContext, UNMATCHED_ROUTE, logger as structured_logger
from learnlab.services.validation_service import validation_service

logger = logging.getLogger(__name__)

# (method, path) pairs whose handlers read a JSON body
JSON_BODY_ROUTES = {("POST", "/api/topic")}


def route_label(request: Request) -> str:
    """Path template of the matched route, so metrics stay bounded by the route table."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


async def observability_middleware(request: Request, call_next):
    """
    Attach a RequestContext, log start and end events, and set X-Request-ID.

    The request id is always generated here; client-supplied ids are only logged.
    """
    context = RequestContext(
        request_id=uuid.uuid4().hex[:12],
        path=request.url.path,
        client_ip=validation_service.get_client_ip(request),
        client_request_id=request.headers.get("X-Request-ID", "")[:64] or None,
    )
    request.state.context = context
    structured_logger.log_request_start(context)

    try:
        response = await call_next(request)
    except Exception as e:
        context.endpoint = route_label(request)
        context.add_error("INTERNAL_ERROR", str(e))
        structured_logger.log_request_end(context, 500)
        raise

    # Routing has filled scope["route"] by now
    context.endpoint = route_label(request)
    structured_logger.log_request_end(context, response.status_code)
    response.headers["X-Request-ID"] = context.request_id
    return response


async def json_body_middleware(request: Request, call_next):
    """Reject bodies that are not JSON on routes that parse one (415)."""
    if (request.method, request.url.path) not in JSON_BODY_ROUTES:
        return await call_next(request)

    content_type = request.headers.get("content-type", "")
    if content_type.split(";")[0].strip().lower() == "application/json":
        return await call_next(request)

    context = getattr(request.state, "context", None)
    if context:
        context.add_error("INVALID_CONTENT_TYPE", f"Got content-type '{content_type}'")
    logger.warning(f"Rejected {request.method} {request.url.path} with content-type '{content_type}'")

    return JSONResponse(
        status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
        content=error_payload(ErrorResponse(
            error="INVALID_CONTENT_TYPE",
            message="Content-Type must be application/json",
            timestamp=datetime.now(timezone.utc).isoformat(),
        )),
    )
