"""Notion database adapter for contact submissions"""
import httpx
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

STATUS_PROPERTY = "Status"
DATE_RECEIVED_PROPERTY = "Date Received"
DEFAULT_STATUS = "New"


class NotionAPIError(Exception):
    """Non-success answer from the Notion API"""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _rich_text(value: Any) -> Dict:
    return {"rich_text": [{"text": {"content": str(value)}}]}


def _title(value: Any) -> Dict:
    return {"title": [{"text": {"content": str(value)}}]}


# form key -> (Notion property name, property value builder)
FIELD_PROPERTY_MAP: Dict[str, tuple[str, Callable[[Any], Dict]]] = {
    "name": ("Name", _title),
    "email": ("Email", lambda v: {"email": v}),
    "phone": ("Phone", lambda v: {"phone_number": v}),
    "company": ("Company", _rich_text),
    "subject": ("Subject", _rich_text),
    "message": ("Message", _rich_text),
    "website": ("Website", lambda v: {"url": v}),
    "budget": ("Budget", _rich_text),
    "newsletter": ("Newsletter", lambda v: {"select": {"name": "Yes" if v else "No"}}),
}


def property_name_for(key: str) -> str:
    """Notion property name for a form key not in the explicit table"""
    return key[:1].upper() + key[1:]


def map_fields_to_properties(
    fields: Dict[str, Any],
    received_at: Optional[datetime] = None,
) -> Dict[str, Dict]:
    """
    Map sanitized form fields onto the Notion page property schema

    Status and Date Received are always attached. Fields whose value is
    None or an empty string are left out.
    """
    if received_at is None:
        received_at = datetime.now(timezone.utc)

    properties: Dict[str, Dict] = {
        STATUS_PROPERTY: {"select": {"name": DEFAULT_STATUS}},
        DATE_RECEIVED_PROPERTY: {"date": {"start": received_at.isoformat()}},
    }

    for key, value in fields.items():
        if value is None or value == "":
            continue
        if key in FIELD_PROPERTY_MAP:
            property_name, build = FIELD_PROPERTY_MAP[key]
            properties[property_name] = build(value)
        else:
            properties[property_name_for(key)] = _rich_text(value)

    return properties


def _error_message(response: httpx.Response) -> str:
    try:
        error_data = response.json()
    except ValueError:
        error_data = {"error": response.text}
    if not isinstance(error_data, dict):
        error_data = {}
    return (
        error_data.get("error")
        or error_data.get("message")
        or f"Notion API error: {response.status_code}"
    )


async def create_page(
    client: httpx.AsyncClient,
    api_key: str,
    database_id: str,
    properties: Dict[str, Dict],
    api_url: str = "https://api.notion.com/v1/pages",
    notion_version: str = "2022-06-28",
) -> str:
    """
    Create a page in the Notion database

    Single request, no retry.

    Returns:
        The new page id

    Raises:
        NotionAPIError: If Notion answers with a non-success status
    """
    payload = {
        "parent": {"database_id": database_id},
        "properties": properties,
    }

    logger.info(
        f"Submitting to Notion database {database_id} with properties {list(properties)}"
    )

    response = await client.post(
        api_url,
        headers={
            "Authorization": f"Bearer {api_key}",
            "Notion-Version": notion_version,
            "Content-Type": "application/json",
        },
        json=payload,
    )

    if not response.is_success:
        message = _error_message(response)
        logger.error(f"Notion API error {response.status_code}: {message}")
        raise NotionAPIError(response.status_code, message)

    return response.json()["id"]
