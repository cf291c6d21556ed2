"""Render a widget configuration to embeddable HTML and the embed script"""
import json
from html import escape
from typing import List, Optional

from contact_widget.models.widget import FieldSpec, WidgetConfig
from contact_widget.services.sanitizer import CAPTCHA_TOKEN_KEY, EMAIL_PATTERN
from contact_widget.services.widget_client import (
    CAPTCHA_INCOMPLETE_MESSAGE,
    CAPTCHA_LOADING_MESSAGE,
    INVALID_EMAIL_MESSAGE,
    MESSAGE_MAX_LENGTH,
    MESSAGE_WARNING_REMAINING,
    MISSING_FIELDS_MESSAGE,
    NETWORK_ERROR_MESSAGE,
    NOT_DEPLOYED_MESSAGE,
    SUCCESS_AUTO_HIDE_SECONDS,
)
from contact_widget.services.widget_config import SITE_URL_NOT_DETECTED

DEFAULT_TEXTAREA_ROWS = 4
RECAPTCHA_SCRIPT_URL = "https://www.google.com/recaptcha/api.js"

_CONTROL_STYLE = (
    "width:100%;padding:12px;border:1px solid #d1d5db;border-radius:8px;"
    "font-size:16px;box-sizing:border-box"
)


def _attr(value) -> str:
    return escape(str(value), quote=True)


def _render_options(spec: FieldSpec) -> str:
    parts = []
    for option in spec.options:
        flags = ""
        if option.disabled:
            flags += " disabled"
        if option.selected:
            flags += " selected"
        parts.append(
            f'<option value="{_attr(option.value)}"{flags}>{escape(option.text)}</option>'
        )
    return "".join(parts)


def render_field(key: str, spec: FieldSpec) -> str:
    """
    Markup for one field

    Checkbox fields carry their label inline and never get the required
    attribute. All other fields get a label above the control with a
    trailing asterisk when required.
    """
    field_id = f"contact-{_attr(key)}"
    name = _attr(key)
    label = escape(spec.display_label)
    required = " required" if spec.required else ""

    if spec.type == "checkbox":
        checked = " checked" if spec.checked else ""
        return (
            '<div class="form-group">'
            '<div class="checkbox-group">'
            f'<input type="checkbox" id="{field_id}" name="{name}"{checked}>'
            f'<label for="{field_id}">{label}</label>'
            "</div></div>"
        )

    placeholder = _attr(spec.placeholder)
    if spec.type == "textarea":
        rows = spec.rows or DEFAULT_TEXTAREA_ROWS
        control = (
            f'<textarea id="{field_id}" name="{name}"{required} '
            f'placeholder="{placeholder}" rows="{rows}" style="{_CONTROL_STYLE};resize:vertical">'
            "</textarea>"
        )
    elif spec.type == "select":
        control = (
            f'<select id="{field_id}" name="{name}"{required} style="{_CONTROL_STYLE};background:#fff">'
            f"{_render_options(spec)}</select>"
        )
    else:
        control = (
            f'<input type="{_attr(spec.type)}" id="{field_id}" name="{name}"{required} '
            f'placeholder="{placeholder}" style="{_CONTROL_STYLE}">'
        )

    marker = " *" if spec.required else ""
    return (
        '<div class="form-group">'
        f'<label for="{field_id}">{label}{marker}</label>'
        f"{control}</div>"
    )


def render_fields(config: WidgetConfig) -> List[str]:
    return [render_field(key, spec) for key, spec in config.enabled_fields().items()]


def render_widget(config: WidgetConfig, script_url: Optional[str] = None) -> str:
    """
    Full widget markup: title, enabled fields, captcha, button, status

    The form carries its submission endpoint in `data-api-url`. With
    `script_url`, the embed script is referenced after the widget so the
    page works when opened directly.
    """
    theme = config.theme
    form = config.form

    captcha = ""
    if form.captcha_active:
        captcha = (
            '<div class="captcha-container">'
            f'<div class="g-recaptcha" data-sitekey="{_attr(form.captcha_site_key)}"></div>'
            "</div>"
        )

    container_style = (
        f"font-family:{_attr(theme.font_family)};max-width:{_attr(theme.max_width)};"
        f"border-radius:{_attr(theme.border_radius)};margin:0 auto;padding:24px;"
        "background:#fff;border:1px solid #e2e8f0"
    )
    button_style = (
        f"width:100%;background:{_attr(theme.primary_color)};color:#fff;border:none;"
        "padding:12px 24px;border-radius:8px;font-size:16px;font-weight:600;cursor:pointer"
    )

    script = ""
    if script_url:
        script = f'<script src="{_attr(script_url)}" defer></script>'

    return (
        f'<div class="contact-widget" style="{container_style}">'
        f"<h2>{escape(form.title)}</h2>"
        f'<form class="contact-form" data-api-url="{_attr(config.api_url)}">'
        + "".join(render_fields(config))
        + captcha
        + f'<button type="submit" class="submit-btn" style="{button_style}">'
        f"{escape(form.submit_text)}</button>"
        '<div class="loading" style="display:none">'
        f'<div class="spinner"></div><p>{escape(form.loading_text)}</p></div>'
        '<div class="status-message" style="display:none"></div>'
        "</form></div>"
        + script
    )


def render_widget_script(config: WidgetConfig, form_url: str) -> str:
    """
    Embed script for customer pages

    Mounts the form into every `[data-contact-widget]` element (or binds a
    form already on the page), loads reCAPTCHA when the captcha is active
    and posts submissions as JSON to the form's `data-api-url`.
    """
    settings = {
        "apiUrl": config.api_url,
        "formUrl": form_url,
        "captchaSiteKey": config.form.captcha_site_key if config.form.captcha_active else "",
        "captchaTokenKey": CAPTCHA_TOKEN_KEY,
        "successMessage": config.form.success_message,
        "errorMessage": config.form.error_message,
        "notDetectedPrefix": SITE_URL_NOT_DETECTED,
        "emailPattern": EMAIL_PATTERN.pattern,
        "autoHideMs": int(SUCCESS_AUTO_HIDE_SECONDS * 1000),
        "messageMaxLength": MESSAGE_MAX_LENGTH,
        "messageWarningRemaining": MESSAGE_WARNING_REMAINING,
        "fields": {
            key: {
                "label": spec.display_label,
                "checkbox": spec.type == "checkbox",
                "required": spec.required and spec.type != "checkbox",
            }
            for key, spec in config.enabled_fields().items()
        },
        "messages": {
            "missing": MISSING_FIELDS_MESSAGE,
            "invalidEmail": INVALID_EMAIL_MESSAGE,
            "captchaLoading": CAPTCHA_LOADING_MESSAGE,
            "captchaIncomplete": CAPTCHA_INCOMPLETE_MESSAGE,
            "notDeployed": NOT_DEPLOYED_MESSAGE,
            "networkError": NETWORK_ERROR_MESSAGE,
        },
    }

    return f"""
(function() {{
    'use strict';

    const CONFIG = {json.dumps(settings)};
    const EMAIL_RE = new RegExp('^(?:' + CONFIG.emailPattern + ')$');

    function loadRecaptcha() {{
        if (!CONFIG.captchaSiteKey || window.grecaptcha) return;
        if (document.querySelector('script[data-contact-widget-recaptcha]')) return;
        const script = document.createElement('script');
        script.src = '{RECAPTCHA_SCRIPT_URL}';
        script.async = true;
        script.defer = true;
        script.setAttribute('data-contact-widget-recaptcha', '');
        document.head.appendChild(script);
    }}

    function resetCaptcha() {{
        if (CONFIG.captchaSiteKey && window.grecaptcha) window.grecaptcha.reset();
    }}

    function showStatus(form, text, success) {{
        const status = form.querySelector('.status-message');
        if (!status) return;
        status.textContent = text;
        if (!text) {{
            status.className = 'status-message';
            status.style.display = 'none';
            return;
        }}
        status.className = 'status-message ' + (success ? 'status-success' : 'status-error');
        status.style.display = 'block';
        if (success) {{
            setTimeout(function() {{ status.style.display = 'none'; }}, CONFIG.autoHideMs);
        }}
    }}

    function setLoading(form, loading) {{
        const button = form.querySelector('.submit-btn');
        const spinner = form.querySelector('.loading');
        if (button) {{
            button.disabled = loading;
            button.style.display = loading ? 'none' : 'block';
        }}
        if (spinner) spinner.style.display = loading ? 'block' : 'none';
    }}

    function collectValues(form) {{
        const values = {{}};
        Object.keys(CONFIG.fields).forEach(function(key) {{
            const input = form.elements[key];
            if (!input) return;
            values[key] = CONFIG.fields[key].checkbox ? !!input.checked : (input.value || '').trim();
        }});
        return values;
    }}

    function validate(values, apiUrl) {{
        const missing = Object.keys(CONFIG.fields)
            .filter(function(key) {{ return CONFIG.fields[key].required && !values[key]; }})
            .map(function(key) {{ return CONFIG.fields[key].label; }});
        if (missing.length) return CONFIG.messages.missing + missing.join(', ');

        if (CONFIG.fields.email && values.email && !EMAIL_RE.test(values.email)) {{
            return CONFIG.messages.invalidEmail;
        }}

        if (CONFIG.captchaSiteKey) {{
            if (!window.grecaptcha) return CONFIG.messages.captchaLoading;
            const token = window.grecaptcha.getResponse();
            if (!token) return CONFIG.messages.captchaIncomplete;
            values[CONFIG.captchaTokenKey] = token;
        }}

        if (apiUrl.indexOf(CONFIG.notDetectedPrefix) === 0) return CONFIG.messages.notDeployed;
        return null;
    }}

    async function handleSubmit(event) {{
        event.preventDefault();
        const form = event.target;
        const apiUrl = form.getAttribute('data-api-url') || CONFIG.apiUrl;
        const values = collectValues(form);

        const problem = validate(values, apiUrl);
        if (problem) {{
            showStatus(form, problem, false);
            return;
        }}

        setLoading(form, true);
        showStatus(form, '', true);

        try {{
            const response = await fetch(apiUrl, {{
                method: 'POST',
                headers: {{ 'Content-Type': 'application/json' }},
                body: JSON.stringify(values)
            }});
            let result = {{}};
            try {{
                result = await response.json();
            }} catch (error) {{
                result = {{}};
            }}
            if (!result || typeof result !== 'object') result = {{}};

            if (response.ok && result.success) {{
                showStatus(form, CONFIG.successMessage, true);
                form.reset();
            }} else {{
                const message = typeof result.error === 'string' && result.error ? result.error : CONFIG.errorMessage;
                showStatus(form, message, false);
            }}
            resetCaptcha();
        }} catch (error) {{
            console.error('Contact form submission error:', error, apiUrl);
            const unreachable = error.name === 'TypeError' && String(error.message).indexOf('Failed to fetch') !== -1;
            showStatus(form, unreachable ? CONFIG.messages.notDeployed : CONFIG.messages.networkError, false);
            resetCaptcha();
        }} finally {{
            setLoading(form, false);
        }}
    }}

    function bindForm(form) {{
        if (form.hasAttribute('data-bound')) return;
        form.setAttribute('data-bound', '');
        form.addEventListener('submit', handleSubmit);

        const message = form.elements['message'];
        if (message && message.addEventListener) {{
            message.addEventListener('input', function() {{
                const remaining = CONFIG.messageMaxLength - this.value.length;
                this.style.borderColor = remaining < 0 ? '#ef4444'
                    : remaining < CONFIG.messageWarningRemaining ? '#f59e0b' : '#d1d5db';
            }});
        }}
    }}

    async function mount(container) {{
        try {{
            const response = await fetch(CONFIG.formUrl);
            if (!response.ok) throw new Error('Failed to load contact form');
            container.innerHTML = await response.text();
        }} catch (error) {{
            console.error('Contact widget error:', error);
            return;
        }}
        container.querySelectorAll('form.contact-form').forEach(bindForm);
        if (window.grecaptcha && window.grecaptcha.render) {{
            container.querySelectorAll('.g-recaptcha').forEach(function(el) {{
                window.grecaptcha.render(el);
            }});
        }}
    }}

    function init() {{
        loadRecaptcha();
        document.querySelectorAll('form.contact-form').forEach(bindForm);
        document.querySelectorAll('[data-contact-widget]').forEach(mount);
    }}

    if (document.readyState === 'loading') {{
        document.addEventListener('DOMContentLoaded', init);
    }} else {{
        init();
    }}
}})();
"""
