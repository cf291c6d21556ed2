"""Widget endpoints - configuration, markup and embed script for contact forms"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, Response
import logging

from contact_widget.config import Settings, get_settings
from contact_widget.models.widget import WidgetConfig
from contact_widget.services.widget_config import build_widget_config
from contact_widget.services.widget_renderer import render_widget, render_widget_script

logger = logging.getLogger(__name__)
router = APIRouter()


def get_widget_config(settings: Settings = Depends(get_settings)) -> WidgetConfig:
    """Default widget configuration with deploy-time values baked in"""
    return build_widget_config(
        site_url=settings.site_url,
        captcha_site_key=settings.recaptcha_site_key,
    )


@router.get("/config", response_model=WidgetConfig)
async def widget_config(config: WidgetConfig = Depends(get_widget_config)):
    """
    Get widget configuration (PUBLIC endpoint - no auth required)
    Used by embedded widgets on customer websites
    """
    return config


@router.get("/form", response_class=HTMLResponse)
async def widget_form(request: Request, config: WidgetConfig = Depends(get_widget_config)):
    """Rendered widget markup (PUBLIC endpoint)"""
    script_url = str(request.url_for("widget_script"))
    return HTMLResponse(content=render_widget(config, script_url=script_url))


@router.get("/script.js")
async def widget_script(request: Request, config: WidgetConfig = Depends(get_widget_config)):
    """
    Serve widget JavaScript file (PUBLIC endpoint)
    Customers add <script src=".../api/widget/script.js"> and a
    <div data-contact-widget></div> where the form should appear
    """
    form_url = str(request.url_for("widget_form"))
    return Response(content=render_widget_script(config, form_url), media_type="application/javascript")
