import logging
from functools import lru_cache

from twilio.rest import Client

from config import TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_PHONE
from pickup import time_slot_label

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    "pending": "Hi {name}! Your scrap pickup request is back in review. We'll confirm a pickup slot soon.",
    "scheduled": "Hi {name}! Your scrap pickup is scheduled for {date} ({slot}). Please keep the item ready.",
    "completed": "Thanks {name}! Your scrap pickup is complete. We hope to see you again.",
}


@lru_cache()
def get_twilio_client():
    if TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN:
        return Client(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN)
    return None


def send_sms(to_phone: str, message: str) -> bool:
    """Send SMS notification to customer"""
    twilio_client = get_twilio_client()
    if not twilio_client:
        logger.info(f"Twilio not configured. Would send: {message} to {to_phone}")
        return False

    try:
        msg = twilio_client.messages.create(
            body=message,
            from_=TWILIO_PHONE,
            to=to_phone
        )
        logger.info(f"SMS sent successfully! SID: {msg.sid}")
        return True
    except Exception as e:
        logger.error(f"Failed to send SMS: {e}")
        return False


def status_message(status: str, name: str, pickup_date: str = "", slot: str = "") -> str:
    template = STATUS_MESSAGES.get(
        status,
        "Update on your scrap pickup request: {status}",
    )
    return template.format(name=name or "Customer", date=pickup_date, slot=slot, status=status.replace("_", " ").title())


def notify_status_change(request: dict, status: str) -> bool:
    """Text the requester about a status change; never raises"""
    profile = request.get("profiles") or {}
    customer_phone = profile.get("phone")
    if not customer_phone:
        logger.warning(f"No phone number found for request {request.get('id')}")
        return False

    message = status_message(
        status,
        profile.get("name"),
        pickup_date=str(request.get("pickup_date") or "")[:10],
        slot=time_slot_label(request.get("pickup_time_slot") or ""),
    )
    return send_sms(customer_phone, message)
