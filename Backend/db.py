import logging
from supabase import create_client, Client
from config import settings

# Configuring logging
logger = logging.getLogger(__name__)

# Table names, see schema.sql
USERS_TABLE = "users"
DOCUMENTS_TABLE = "documents"
ASSIGNMENTS_TABLE = "document_assignments"

# Initializing Supabase Client
try:
    supabase: Client = create_client(settings.supabase_url, settings.supabase_service_role_key)
except Exception as e:
    logger.critical(f"Failed to initialize Supabase client: {e}")
    raise


def check_connection() -> None:
    """Lightweight query proving the datastore is reachable. Raises on failure."""
    supabase.table(DOCUMENTS_TABLE).select("id").limit(1).execute()
