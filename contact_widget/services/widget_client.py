"""
Widget submission flow.

Mirrors what the embedded form does in the browser: collect values,
validate locally, gate on the captcha, post JSON to the configured
endpoint and report the outcome. The submit control stays disabled for
the whole network round trip, so one widget never has two submissions
in flight.
"""
import httpx
import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Protocol

from pydantic import BaseModel

from contact_widget.models.widget import FieldSpec, WidgetConfig
from contact_widget.services.sanitizer import CAPTCHA_TOKEN_KEY, is_valid_email
from contact_widget.services.widget_config import build_widget_config, is_api_url_detected

logger = logging.getLogger(__name__)

SUCCESS_AUTO_HIDE_SECONDS = 5.0
MESSAGE_MAX_LENGTH = 1000
MESSAGE_WARNING_REMAINING = 50

MISSING_FIELDS_MESSAGE = "Please fill in all required fields: "
INVALID_EMAIL_MESSAGE = "Please enter a valid email address."
CAPTCHA_LOADING_MESSAGE = "CAPTCHA is loading. Please wait and try again."
CAPTCHA_INCOMPLETE_MESSAGE = "Please complete the CAPTCHA verification."
NOT_DEPLOYED_MESSAGE = "Unable to connect to the server. Please check if the site is properly deployed."
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."


class SubmissionState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class StatusMessage(BaseModel):
    """Message shown under the form"""
    text: str
    success: bool
    auto_hide_seconds: Optional[float] = None


class CaptchaProvider(Protocol):
    """Bot-verification widget as seen from the form"""

    @property
    def loaded(self) -> bool: ...

    def get_response(self) -> str: ...

    def reset(self) -> None: ...


def message_length_state(text: str) -> str:
    """Indicator for the message box: 'over', 'near' or 'ok'"""
    remaining = MESSAGE_MAX_LENGTH - len(text)
    if remaining < 0:
        return "over"
    if remaining < MESSAGE_WARNING_REMAINING:
        return "near"
    return "ok"


def _default_value(spec: FieldSpec) -> Any:
    if spec.type == "checkbox":
        return spec.checked
    if spec.type == "select":
        for option in spec.options:
            if option.selected:
                return option.value
    return ""


class ContactWidget:
    """One mounted contact form"""

    def __init__(
        self,
        overrides: Optional[Mapping] = None,
        site_url: Optional[str] = None,
        captcha_site_key: Optional[str] = None,
        captcha: Optional[CaptchaProvider] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.config: WidgetConfig = build_widget_config(overrides, site_url, captcha_site_key)
        self.captcha = captcha
        self.client = client
        self.timeout = timeout

        self.state = SubmissionState.IDLE
        self.last_outcome: Optional[SubmissionState] = None
        self.status: Optional[StatusMessage] = None
        self.submit_disabled = False
        self.loading_visible = False
        self.values: Dict[str, Any] = {}
        self.reset_form()

    # Form state

    def reset_form(self):
        self.values = {
            key: _default_value(spec) for key, spec in self.config.enabled_fields().items()
        }

    def set_value(self, key: str, value: Any):
        if key not in self.config.enabled_fields():
            raise KeyError(f"Field '{key}' is not enabled")
        self.values[key] = value

    def fill(self, **values: Any):
        for key, value in values.items():
            self.set_value(key, value)

    def collect_values(self) -> Dict[str, Any]:
        """Current values of enabled fields, trimmed"""
        collected: Dict[str, Any] = {}
        for key, spec in self.config.enabled_fields().items():
            raw = self.values.get(key)
            if spec.type == "checkbox":
                collected[key] = bool(raw)
            else:
                collected[key] = str(raw).strip() if raw else ""
        return collected

    def missing_required_fields(self, values: Dict[str, Any]) -> List[str]:
        # Checkboxes are rendered without the required attribute
        return [
            spec.display_label
            for key, spec in self.config.enabled_fields().items()
            if spec.required and spec.type != "checkbox" and not values.get(key)
        ]

    # Status

    def show_status(self, text: str, success: bool = True):
        if not text:
            self.status = None
            return
        self.status = StatusMessage(
            text=text,
            success=success,
            auto_hide_seconds=SUCCESS_AUTO_HIDE_SECONDS if success else None,
        )

    def set_loading(self, loading: bool):
        self.submit_disabled = loading
        self.loading_visible = loading

    def _reset_captcha(self):
        if self.config.form.captcha_active and self.captcha is not None and self.captcha.loaded:
            self.captcha.reset()

    def _abort(self, message: str) -> bool:
        self.show_status(message, False)
        self.state = SubmissionState.IDLE
        return False

    def _fail(self, message: str) -> bool:
        self.show_status(message, False)
        self._reset_captcha()
        self.last_outcome = SubmissionState.ERROR
        return False

    # Submission

    def _validate(self, payload: Dict[str, Any]) -> Optional[str]:
        missing = self.missing_required_fields(payload)
        if missing:
            return MISSING_FIELDS_MESSAGE + ", ".join(missing)

        email_spec = self.config.fields.get("email")
        email = payload.get("email")
        if email_spec is not None and email_spec.enabled and email and not is_valid_email(email):
            return INVALID_EMAIL_MESSAGE

        if self.config.form.captcha_active:
            if self.captcha is None or not self.captcha.loaded:
                return CAPTCHA_LOADING_MESSAGE
            token = self.captcha.get_response()
            if not token:
                return CAPTCHA_INCOMPLETE_MESSAGE
            payload[CAPTCHA_TOKEN_KEY] = token

        if not is_api_url_detected(self.config.api_url):
            logger.error(f"Refusing to submit to undetected endpoint {self.config.api_url}")
            return NOT_DEPLOYED_MESSAGE

        return None

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        if self.client is not None:
            return await self.client.post(self.config.api_url, json=payload)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.config.api_url, json=payload)

    async def submit(self) -> bool:
        """
        Run one submission attempt

        Returns:
            True if the server accepted the submission
        """
        self.state = SubmissionState.VALIDATING
        payload = self.collect_values()

        problem = self._validate(payload)
        if problem:
            return self._abort(problem)

        self.state = SubmissionState.SUBMITTING
        self.set_loading(True)
        self.show_status("")

        try:
            logger.info(f"Submitting contact form to {self.config.api_url}")
            response = await self._post(payload)
            try:
                result = response.json()
            except ValueError:
                result = {}
            if not isinstance(result, dict):
                result = {}

            if response.is_success and result.get("success"):
                self.show_status(self.config.form.success_message, True)
                self.reset_form()
                self._reset_captcha()
                self.last_outcome = SubmissionState.SUCCESS
                return True

            error = result.get("error")
            if not isinstance(error, str) or not error:
                error = self.config.form.error_message
            return self._fail(error)

        except httpx.TransportError as e:
            logger.error(f"Contact form submission error: {e!r} (endpoint {self.config.api_url})")
            if isinstance(e, httpx.ConnectError):
                message = NOT_DEPLOYED_MESSAGE
            else:
                message = NETWORK_ERROR_MESSAGE
            return self._fail(message)

        except Exception as e:
            logger.exception(f"Contact form submission error: {e!r} (endpoint {self.config.api_url})")
            return self._fail(NETWORK_ERROR_MESSAGE)

        finally:
            self.set_loading(False)
            self.state = SubmissionState.IDLE
