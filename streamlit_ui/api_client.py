"""HTTP helpers the Streamlit chat UI uses to talk to the chat API."""
from typing import Any, Dict, List, Optional

import requests
from requests.exceptions import RequestException

MAX_MESSAGE_LENGTH = 4000
REQUEST_TIMEOUT = 60


class ChatApiError(RuntimeError):
    """Raised with a message that can be shown to the user as-is."""


def validate_message(text: str) -> str:
    """Return the trimmed message or raise ChatApiError with a user-facing reason."""
    text = (text or "").strip()
    if not text:
        raise ChatApiError("Please type a message.")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise ChatApiError(f"Message is too long (max {MAX_MESSAGE_LENGTH} characters).")
    return text


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json() or {}
    except ValueError:
        return "Request failed"
    error = data.get("error")
    if isinstance(error, dict):
        field_errors = error.get("fieldErrors") or {}
        first = (field_errors.get("message") or [None])[0]
        return first or "Invalid request"
    return error or "Request failed"


def _json_body(resp: requests.Response) -> Dict[str, Any]:
    try:
        data = resp.json()
    except ValueError as e:
        raise ChatApiError("Malformed API response") from e
    if not isinstance(data, dict):
        raise ChatApiError("Malformed API response")
    return data


def fetch_history(api_base_url: str, session_id: str) -> List[Dict[str, Any]]:
    """Load the stored messages of a session, oldest first."""
    url = f"{api_base_url}/chat/history"
    try:
        resp = requests.get(url, params={"sessionId": session_id}, timeout=REQUEST_TIMEOUT)
    except RequestException as e:
        raise ChatApiError(f"Failed to reach API at {url}: {e}") from e
    if resp.status_code != 200:
        raise ChatApiError("Failed to load history")
    return _json_body(resp).get("messages") or []


def post_message(
    api_base_url: str, message: str, session_id: Optional[str] = None
) -> Dict[str, str]:
    """Send a message and return ``{"reply", "sessionId"}``."""
    url = f"{api_base_url}/chat/message"
    payload: Dict[str, Any] = {"message": message}
    if session_id:
        payload["sessionId"] = session_id
    try:
        resp = requests.post(url, json=payload, timeout=REQUEST_TIMEOUT)
    except RequestException as e:
        raise ChatApiError(f"Failed to reach API at {url}: {e}") from e
    if resp.status_code != 200:
        raise ChatApiError(_error_message(resp))
    data = _json_body(resp)
    if "reply" not in data or "sessionId" not in data:
        raise ChatApiError("Malformed API response")
    return {"reply": data["reply"], "sessionId": data["sessionId"]}
