"""reCAPTCHA verification service"""
import httpx
import logging
from typing import Optional

logger = logging.getLogger(__name__)


async def verify_captcha(
    client: httpx.AsyncClient,
    token: Optional[str],
    secret_key: Optional[str],
    verify_url: str,
) -> bool:
    """
    Verify a reCAPTCHA response token

    Args:
        client: Shared HTTP client
        token: Response token produced by the widget
        secret_key: Server-side reCAPTCHA secret
        verify_url: siteverify endpoint

    Returns:
        True only when the verification service answers success=true
    """
    if not token or not secret_key:
        return False

    try:
        response = await client.post(
            verify_url,
            data={"secret": secret_key, "response": token},
        )
        result = response.json()
        return isinstance(result, dict) and result.get("success") is True
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"CAPTCHA verification error: {e}")
        return False
