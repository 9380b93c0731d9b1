import re
from urllib.parse import quote, quote_plus

from config import BUSINESS_PHONE, DEFAULT_WHATSAPP_MESSAGE, MAP_QUERY


def digits_only(phone_number: str) -> str:
    return re.sub(r"\D", "", phone_number or "")


def whatsapp_link(phone_number: str = BUSINESS_PHONE, message: str = DEFAULT_WHATSAPP_MESSAGE) -> str:
    """wa.me chat link with a pre-filled message"""
    link = f"https://wa.me/{digits_only(phone_number)}"
    if message:
        link += f"?text={quote(message, safe='')}"
    return link


def call_link(phone_number: str = BUSINESS_PHONE) -> str:
    return f"tel:+{digits_only(phone_number)}"


def map_link(query: str = MAP_QUERY) -> str:
    return f"https://maps.google.com/?q={quote_plus(query)}"
