from functools import lru_cache
import logging

from supabase import create_client, Client

from config import SUPABASE_URL, SUPABASE_KEY

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client:
    """Returns the Supabase client instance"""
    if not SUPABASE_URL or not SUPABASE_KEY:
        logger.warning("SUPABASE_URL or SUPABASE_KEY is not set; backend calls will fail")
    supabase: Client = create_client(SUPABASE_URL, SUPABASE_KEY)
    logger.info(f"Supabase client created for {SUPABASE_URL}")
    return supabase


def new_supabase_client() -> Client:
    """A fresh client for sign-up/sign-in, which store a session on the client"""
    return create_client(SUPABASE_URL, SUPABASE_KEY)
