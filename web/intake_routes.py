"""
Deal Intake Routes - Web API for Deal Submissions

Public endpoint behind the intake form. Each request runs strictly in order:
preflight, method gate, rate limit, configuration gate, multipart parse,
validation, uploads, webhook relay.

Errors:
- Validation problems are returned in full so the submitter can fix them
- Infrastructure failures are reported generically and logged with detail
"""

from __future__ import annotations

import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from core.submission import (
    MAX_FILE_SIZE_BYTES,
    ConfigurationError,
    FieldValidationFailed,
    FilePart,
    IntakeError,
    ParseError,
    RateLimitExceeded,
    check_file_size,
    parse_form_parts,
    require_configuration,
    validate_attachment,
)
from web.cors import cors_headers


logger = logging.getLogger(__name__)


# =============================================================================
# Router Setup
# =============================================================================

router = APIRouter(prefix="/api", tags=["intake"])

SUBMIT_PATH = "/submit-deal"
UNKNOWN_CLIENT = "unknown"


# =============================================================================
# Response Model
# =============================================================================


class IntakeResponse(BaseModel):
    """JSON body of every intake response."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    details: Optional[List[str]] = None
    retry_after: Optional[int] = Field(default=None, alias="retryAfter")


def _respond(
    status_code: int,
    body: IntakeResponse,
    headers: dict[str, str],
) -> JSONResponse:
    return JSONResponse(
        content=body.model_dump(by_alias=True, exclude_none=True),
        status_code=status_code,
        headers=headers,
    )


# =============================================================================
# Request Helpers
# =============================================================================


def get_client_ip(request: Request) -> str:
    """
    Caller address for rate limiting and the relay payload.

    Uses the first X-Forwarded-For hop, then X-Real-IP, then the socket peer.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_CLIENT


async def read_form_parts(request: Request) -> list[tuple[str, Union[str, FilePart]]]:
    """
    Read every multipart item, loading file contents into memory.

    File inputs left empty by a browser (no filename, no bytes) are skipped.

    Raises:
        ParseError: If the body is not multipart or cannot be parsed
        AttachmentRejected: If a file part declares a size over the limit
    """
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" not in content_type:
        raise ParseError("Invalid content type. Expected multipart/form-data")

    try:
        form = await request.form()
    except (HTTPException, MultiPartException) as e:
        detail = getattr(e, "detail", None) or getattr(e, "message", None) or str(e)
        raise ParseError(f"Malformed form data: {detail}") from e

    parts: list[tuple[str, Union[str, FilePart]]] = []
    for name, value in form.multi_items():
        if isinstance(value, UploadFile):
            if value.size is not None and value.size > MAX_FILE_SIZE_BYTES:
                # Earlier files still report first
                for _, earlier in parts:
                    if isinstance(earlier, FilePart):
                        validate_attachment(earlier)
                await value.close()
                check_file_size(value.filename or "", value.size)
            content = await value.read()
            await value.close()
            if not value.filename and not content:
                continue
            parts.append(
                (
                    name,
                    FilePart(
                        field_name=name,
                        filename=value.filename or "",
                        content_type=value.content_type or "",
                        content=content,
                    ),
                )
            )
        else:
            parts.append((name, value))
    return parts


# =============================================================================
# Deal Submission
# =============================================================================


async def method_not_allowed_handler(request: Request, exc: HTTPException):
    """
    Answer any other method on the submit path with the intake 405 body.

    Installed for every HTTP exception; anything else falls through to
    FastAPI's default handler.
    """
    if exc.status_code == 405 and request.url.path == router.prefix + SUBMIT_PATH:
        headers = cors_headers(request.headers.get("origin", ""), request.app.state.config)
        return _respond(405, IntakeResponse(success=False, error="Method not allowed"), headers)
    return await http_exception_handler(request, exc)


@router.api_route(SUBMIT_PATH, methods=["POST", "OPTIONS"])
async def submit_deal(request: Request):
    """
    Accept a deal submission.

    Responds 200 on success, 204 to preflight, 400 for parse or validation
    problems, 429 when rate limited, 500 for configuration or storage
    failures and 502 when the webhook fails. Other methods get 405 from
    method_not_allowed_handler.
    """
    config = request.app.state.config
    headers = cors_headers(request.headers.get("origin", ""), config)

    if request.method == "OPTIONS":
        return Response(status_code=204, headers=headers)

    limiter = request.app.state.rate_limiter

    try:
        client_ip = get_client_ip(request)
        decision = limiter.check(client_ip)
        if not decision.allowed:
            raise RateLimitExceeded(retry_after=int(limiter.window_seconds))

        require_configuration(config)

        form = parse_form_parts(await read_form_parts(request))

        service = request.app.state.service_factory(config)
        try:
            await run_in_threadpool(service.process, form, client_ip)
        finally:
            service.close()

    except RateLimitExceeded as e:
        return _respond(
            e.status_code,
            IntakeResponse(success=False, error=e.message, retry_after=e.retry_after),
            {
                **headers,
                "Retry-After": str(e.retry_after),
                "X-RateLimit-Remaining": "0",
            },
        )
    except ConfigurationError as e:
        logger.error(e.detail)
        return _respond(e.status_code, IntakeResponse(success=False, error=e.message), headers)
    except FieldValidationFailed as e:
        return _respond(
            e.status_code,
            IntakeResponse(success=False, error=e.message, details=e.errors),
            headers,
        )
    except IntakeError as e:
        # Parse, storage and relay failures; storage and relay already logged
        return _respond(e.status_code, IntakeResponse(success=False, error=e.message), headers)
    except Exception:
        logger.exception("Unexpected error while processing submission")
        return _respond(
            500,
            IntakeResponse(success=False, error=IntakeError.public_message),
            headers,
        )

    return _respond(
        200,
        IntakeResponse(success=True, message="Submission received successfully"),
        {**headers, "X-RateLimit-Remaining": str(decision.remaining)},
    )
