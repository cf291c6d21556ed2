"""Input sanitization and email validation for contact submissions"""
import re
from typing import Any, Dict

CAPTCHA_TOKEN_KEY = "captchaToken"

# Same shape check the widget runs client side: local@domain.tld
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def _element_pattern(tag: str) -> re.Pattern:
    # Whole element including its content, stopping at the first closing tag
    return re.compile(
        rf"<{tag}\b[^<]*(?:(?!</{tag}>)<[^<]*)*</{tag}>",
        re.IGNORECASE,
    )


_STRIP_PATTERNS = [
    _element_pattern("script"),
    _element_pattern("iframe"),
    _element_pattern("object"),
    _element_pattern("embed"),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
]


def _strip_once(value: str) -> str:
    for pattern in _STRIP_PATTERNS:
        value = pattern.sub("", value)
    return value.strip()


def sanitize_input(value: Any) -> Any:
    """
    Strip script-like markup from a string value

    Removes script/iframe/object/embed elements with their content,
    ``javascript:`` prefixes and inline ``on*=`` handlers, then trims
    whitespace. Passes are repeated until nothing changes, so fragments
    that reassemble into a disallowed tag after one pass are removed too.
    Non-string values are returned unchanged.

    This is a regex pre-filter, not an HTML parser.
    """
    if not isinstance(value, str):
        return value

    previous = None
    while previous != value:
        previous = value
        value = _strip_once(value)
    return value


def sanitize_payload(form_data: Dict[str, Any]) -> Dict[str, Any]:
    """Sanitize every field of a submission, dropping the captcha token"""
    return {
        key: sanitize_input(value)
        for key, value in form_data.items()
        if key != CAPTCHA_TOKEN_KEY
    }


def is_valid_email(value: Any) -> bool:
    """Return True when value looks like local@domain.tld"""
    if not isinstance(value, str):
        return False
    return EMAIL_PATTERN.fullmatch(value) is not None
