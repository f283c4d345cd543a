"""Push-notification delivery for non-blocking agent requests."""

import json
import logging
import urllib.error
import urllib.request
import uuid
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def send_webhook_response(
    url: str, token: Optional[str], parts: List[Dict[str, Any]], request_id: str
) -> bool:
    return _post(url, token, _build_payload(parts, request_id))


def send_webhook_error(
    url: str, token: Optional[str], error_msg: str, request_id: str
) -> bool:
    parts = [{
        "kind": "text",
        "text": f"Sorry, an error occurred while processing your request: {error_msg}",
    }]
    return _post(url, token, _build_payload(parts, request_id))


def _build_payload(parts: List[Dict[str, Any]], request_id: str) -> Dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "message/send",
        "params": {
            "message": {
                "kind": "message",
                "role": "agent",
                "messageId": str(uuid.uuid4()),
                "parts": parts,
            }
        },
    }


def _post(url: str, token: Optional[str], payload: Dict[str, Any]) -> bool:
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    req = urllib.request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers=headers,
        method="POST",
    )

    logger.info(f"Sending webhook to: {url}")
    try:
        with urllib.request.urlopen(req, timeout=10) as resp:
            ok = 200 <= resp.status < 300
    except (urllib.error.URLError, urllib.error.HTTPError) as e:
        logger.error(f"Webhook delivery failed: {e}")
        return False

    if not ok:
        logger.error(f"Webhook failed with status {resp.status}")
    return ok
