"""Widget configuration defaults and merging"""
import copy
import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional

from contact_widget.models.widget import WidgetConfig

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/api/contact/submit-contact"
SITE_URL_NOT_DETECTED = "SITE_URL_NOT_DETECTED"

DEFAULT_WIDGET_CONFIG: Dict[str, Any] = {
    "api_url": "",
    "theme": {
        "primary_color": "#3b82f6",
        "border_radius": "12px",
        "font_family": '-apple-system,BlinkMacSystemFont,"Segoe UI",Roboto,sans-serif',
        "max_width": "500px",
    },
    "form": {
        "title": "Contact Us",
        "submit_text": "Send Message",
        "success_message": "Thank you! Your message has been sent successfully.",
        "error_message": "Failed to send message. Please try again.",
        "loading_text": "Sending message...",
        "enable_captcha": True,
        "captcha_site_key": "",
    },
    "fields": {
        "name": {
            "enabled": True, "required": True, "label": "Full Name",
            "placeholder": "Your full name", "type": "text",
        },
        "email": {
            "enabled": True, "required": True, "label": "Email Address",
            "placeholder": "your@email.com", "type": "email",
        },
        "phone": {
            "enabled": False, "required": False, "label": "Phone Number",
            "placeholder": "+1 (555) 123-4567", "type": "tel",
        },
        "company": {
            "enabled": False, "required": False, "label": "Company",
            "placeholder": "Your company name", "type": "text",
        },
        "subject": {
            "enabled": False,
            "required": True,
            "label": "Subject",
            "placeholder": "Select a subject",
            "type": "select",
            "options": [
                {"value": "", "text": "Select a subject", "disabled": True, "selected": True},
                {"value": "General Inquiry", "text": "General Inquiry"},
                {"value": "Support Request", "text": "Support Request"},
                {"value": "Sales Question", "text": "Sales Question"},
                {"value": "Partnership", "text": "Partnership"},
                {"value": "Feedback", "text": "Feedback"},
                {"value": "Other", "text": "Other"},
            ],
        },
        "message": {
            "enabled": True, "required": True, "label": "Message",
            "placeholder": "Please describe your inquiry or message...",
            "type": "textarea", "rows": 4,
        },
        "website": {
            "enabled": False, "required": False, "label": "Website",
            "placeholder": "https://your-website.com", "type": "url",
        },
        "budget": {
            "enabled": False,
            "required": False,
            "label": "Budget Range",
            "placeholder": "Select budget range",
            "type": "select",
            "options": [
                {"value": "", "text": "Select budget range", "disabled": True, "selected": True},
                {"value": "Under $1,000", "text": "Under $1,000"},
                {"value": "$1,000 - $5,000", "text": "$1,000 - $5,000"},
                {"value": "$5,000 - $10,000", "text": "$5,000 - $10,000"},
                {"value": "$10,000 - $25,000", "text": "$10,000 - $25,000"},
                {"value": "Over $25,000", "text": "Over $25,000"},
            ],
        },
        "newsletter": {
            "enabled": False, "required": False, "label": "Subscribe to Newsletter",
            "type": "checkbox", "checked": False,
        },
    },
}


def merge_config(base: Mapping, override: Mapping) -> Dict[str, Any]:
    """
    Deep-merge override onto a copy of base

    Mapping values merge recursively; everything else, lists included,
    replaces the value in base. Neither argument is modified.
    """
    merged = copy.deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping):
            current = merged.get(key)
            merged[key] = merge_config(current if isinstance(current, Mapping) else {}, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def resolve_api_url(site_url: Optional[str]) -> str:
    """Submission endpoint for the deploy-time site URL"""
    if site_url:
        logger.info(f"Site URL from deployment configuration: {site_url}")
        return site_url.rstrip("/") + SUBMIT_PATH

    logger.error(
        "Could not detect the site URL. Make sure SITE_URL is set at deploy time."
    )
    return SITE_URL_NOT_DETECTED + SUBMIT_PATH


def is_api_url_detected(api_url: str) -> bool:
    return bool(api_url) and not api_url.startswith(SITE_URL_NOT_DETECTED)


def build_widget_config(
    overrides: Optional[Mapping] = None,
    site_url: Optional[str] = None,
    captcha_site_key: Optional[str] = None,
) -> WidgetConfig:
    """
    Build the configuration for one widget instance

    Deploy-time values fill the defaults first; caller overrides win.
    """
    injected: Dict[str, Any] = {"api_url": resolve_api_url(site_url)}
    if captcha_site_key is not None:
        injected["form"] = {"captcha_site_key": captcha_site_key}

    defaults = merge_config(DEFAULT_WIDGET_CONFIG, injected)
    return WidgetConfig.model_validate(merge_config(defaults, overrides or {}))
