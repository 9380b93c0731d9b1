import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def get_env(key: str, default: str = None) -> str:
    """Get environment variable and strip surrounding quotes if present"""
    value = os.getenv(key, default)
    if value and isinstance(value, str):
        value = value.strip().strip('"').strip("'")
    return value


# Supabase credentials
SUPABASE_URL = get_env("SUPABASE_URL")
SUPABASE_KEY = get_env("SUPABASE_KEY")

# Storage
SCRAP_IMAGES_BUCKET = get_env("SCRAP_IMAGES_BUCKET", "scrap_images")
SIGNED_URL_EXPIRES_IN = int(get_env("SIGNED_URL_EXPIRES_IN", "3600"))
MAX_REQUEST_IMAGES = 5
MAX_PICKUP_DAYS_AHEAD = 30

# Business contact details used for deep links
BUSINESS_PHONE = get_env("BUSINESS_PHONE", "917816069085")
MAP_QUERY = get_env("MAP_QUERY", "LB Nagar, Hyderabad")
DEFAULT_WHATSAPP_MESSAGE = "Hello, I'm interested in your scrap pickup service."

# Twilio (optional, used for status SMS)
TWILIO_ACCOUNT_SID = get_env("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = get_env("TWILIO_AUTH_TOKEN")
TWILIO_PHONE = get_env("TWILIO_PHONE_NUMBER")

# Pincode lookup
PINCODE_API_URL = get_env("PINCODE_API_URL", "https://api.postalpincode.in/pincode")
PINCODE_FALLBACK_API_URL = get_env("PINCODE_FALLBACK_API_URL", "https://postalpincode.in/api/pincode")
PINCODE_TIMEOUT_SECONDS = int(get_env("PINCODE_TIMEOUT_SECONDS", "6"))

# Web
CORS_ORIGINS = [origin.strip() for origin in get_env("CORS_ORIGINS", "*").split(",") if origin.strip()]
LOG_LEVEL = get_env("LOG_LEVEL", "INFO").upper()
