"""
Pincode service for filling in city and state on the pickup address form.
Uses the free postalpincode.in API, with a fallback host.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from config import PINCODE_API_URL, PINCODE_FALLBACK_API_URL, PINCODE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

PINCODE_REQUEST_HEADERS = {
    "User-Agent": "ScrapPickupPincodeService/1.0",
    "Accept": "application/json",
}
PINCODE_SOURCES = (
    ("primary", PINCODE_API_URL),
    ("fallback", PINCODE_FALLBACK_API_URL),
)


def is_valid_pincode(pincode: str) -> bool:
    return bool(pincode) and len(pincode) == 6 and pincode.isdigit() and pincode[0] != "0"


def _fetch_pincode_payload(base_url: str, pincode: str) -> Any:
    response = requests.get(
        f"{base_url}/{pincode}",
        timeout=PINCODE_TIMEOUT_SECONDS,
        headers=PINCODE_REQUEST_HEADERS,
    )
    response.raise_for_status()
    return response.json()


def _parse_pincode_response(payload: Any) -> Tuple[Optional[str], Optional[str], List[str]]:
    """Both hosts answer with a list holding one {"Status", "PostOffice"} entry."""
    if not payload:
        return None, None, []

    entry = payload[0] if isinstance(payload, list) else payload
    if not isinstance(entry, dict) or entry.get("Status") != "Success":
        return None, None, []

    post_offices: List[Dict[str, Any]] = entry.get("PostOffice") or []
    if not post_offices:
        return None, None, []

    first = post_offices[0]
    city = (first.get("District") or first.get("Division") or first.get("Block") or "").strip() or None
    state = (first.get("State") or first.get("Circle") or "").strip() or None
    localities = [po.get("Name").strip() for po in post_offices if (po.get("Name") or "").strip()]
    return city, state, localities


def lookup_pincode(pincode: str) -> Optional[Dict[str, Any]]:
    """
    Resolve a 6-digit Indian pincode to city, state and locality names.

    Returns None when the pincode is malformed or neither source knows it.
    """
    pincode = (pincode or "").strip()
    if not is_valid_pincode(pincode):
        return None

    for source_name, base_url in PINCODE_SOURCES:
        try:
            payload = _fetch_pincode_payload(base_url, pincode)
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Pincode lookup via {source_name} source failed for {pincode}: {e}")
            continue

        city, state, localities = _parse_pincode_response(payload)
        if city and state:
            logger.info(f"Pincode {pincode} resolved via {source_name}: {city}, {state}")
            return {"pincode": pincode, "city": city, "state": state, "localities": localities}

    logger.info(f"Pincode {pincode} not found")
    return None
