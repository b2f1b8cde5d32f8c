import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    # Supabase (BOQ, purchase order and inventory tables)
    SUPABASE_URL = os.getenv("SUPABASE_URL")
    SUPABASE_KEY = os.getenv("SUPABASE_KEY")

    # Local custom category cache (SQLite)
    CATEGORY_CACHE_PATH = os.getenv("CATEGORY_CACHE_PATH", "./boq_categories.db")

    # BOQ listing
    BOQ_PAGE_LIMIT = int(os.getenv("BOQ_PAGE_LIMIT", "100"))

    # API Server
    API_HOST = os.getenv("API_HOST", "127.0.0.1")
    API_PORT = int(os.getenv("API_PORT", "8000"))

    # Dashboard client
    API_BASE_URL = os.getenv("API_BASE_URL", f"http://{API_HOST}:{API_PORT}")
    API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", "10"))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    @staticmethod
    def validate():
        """Ensure required credentials are present"""
        missing = []
        if not Config.SUPABASE_URL:
            missing.append("SUPABASE_URL")
        if not Config.SUPABASE_KEY:
            missing.append("SUPABASE_KEY")

        if missing:
            raise EnvironmentError(f"Missing required environment variables: {', '.join(missing)}")

        return True
