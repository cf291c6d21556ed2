"""Contact submission endpoint - receives widget posts and writes them to Notion"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response
from typing import AsyncIterator
import httpx
import json
import logging

from contact_widget.config import Settings, get_settings
from contact_widget.middleware.cors import cors_headers
from contact_widget.middleware.error_handler import internal_error_response
from contact_widget.models.contact import ContactSubmitResponse, ErrorResponse
from contact_widget.services.captcha_service import verify_captcha
from contact_widget.services.notion_service import (
    NotionAPIError,
    create_page,
    map_fields_to_properties,
)
from contact_widget.services.rate_limiter import RateLimiter, get_client_identifier
from contact_widget.services.sanitizer import (
    CAPTCHA_TOKEN_KEY,
    is_valid_email,
    sanitize_payload,
)

logger = logging.getLogger(__name__)
router = APIRouter()

NOTION_CONFIG_MISSING = (
    "Notion configuration missing. Please set NOTION_API_KEY and "
    "NOTION_DATABASE_ID environment variables."
)


def get_rate_limiter(request: Request) -> RateLimiter:
    """Rate limiter owned by the running application"""
    return request.app.state.rate_limiter


async def get_http_client(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
        yield client


async def _read_form_data(request: Request) -> dict:
    body = await request.body()
    if not body:
        return {}
    try:
        form_data = json.loads(body)
    except ValueError:
        return {}
    return form_data if isinstance(form_data, dict) else {}


@router.options("/submit-contact")
async def submit_contact_preflight():
    """CORS preflight (PUBLIC endpoint)"""
    return Response(content="", status_code=status.HTTP_200_OK, headers=cors_headers())


@router.post(
    "/submit-contact",
    response_model=ContactSubmitResponse,
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def submit_contact(
    request: Request,
    settings: Settings = Depends(get_settings),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """
    Handle contact form submission (PUBLIC endpoint - no auth required)

    Pipeline: config check, rate limit, parse, captcha, sanitize,
    email check, map to Notion properties, create the Notion page.
    """
    if not settings.notion_configured:
        logger.error(
            f"Missing Notion configuration: has_api_key={bool(settings.notion_api_key)}, "
            f"has_database_id={bool(settings.notion_database_id)}"
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": NOTION_CONFIG_MISSING},
            headers=cors_headers(),
        )

    try:
        client_ip = get_client_identifier(request)

        if not rate_limiter.is_allowed(client_ip):
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please wait before submitting again.",
            )

        form_data = await _read_form_data(request)
        if not form_data:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No form data received.",
            )

        # Skipped when either the token or the secret is absent
        captcha_token = form_data.get(CAPTCHA_TOKEN_KEY)
        if captcha_token and settings.recaptcha_secret_key:
            captcha_valid = await verify_captcha(
                client,
                captcha_token,
                settings.recaptcha_secret_key,
                settings.recaptcha_verify_url,
            )
            if not captcha_valid:
                logger.warning(f"CAPTCHA verification failed for {client_ip}")
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="CAPTCHA verification failed. Please try again.",
                )

        sanitized_data = sanitize_payload(form_data)

        email = sanitized_data.get("email")
        if email and not is_valid_email(email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid email format.",
            )

        properties = map_fields_to_properties(sanitized_data)

        try:
            page_id = await create_page(
                client,
                settings.notion_api_key,
                settings.notion_database_id,
                properties,
                api_url=settings.notion_api_url,
                notion_version=settings.notion_version,
            )
        except NotionAPIError as e:
            return JSONResponse(
                status_code=e.status_code,
                content={"error": e.message},
                headers=cors_headers(),
            )

        logger.info(
            f"Contact form submitted successfully: page_id={page_id}, "
            f"fields={list(sanitized_data)}, client_ip={client_ip}"
        )

        return ContactSubmitResponse(
            success=True,
            message="Contact form submitted successfully",
            id=page_id,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Contact form submission error: {e}")
        return internal_error_response(e)
