import uvicorn
import logging
from config import Config
from api.routes import app

logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

logger = logging.getLogger(__name__)


def log_banner():
    supabase = Config.SUPABASE_URL if Config.SUPABASE_URL else "not configured"
    logger.info("=" * 50)
    logger.info("BOQ Reconciliation Service")
    logger.info("=" * 50)
    logger.info(f"Supabase: {supabase}")
    logger.info(f"Custom categories cached in {Config.CATEGORY_CACHE_PATH}")
    logger.info(f"BOQ page size: {Config.BOQ_PAGE_LIMIT} items")
    logger.info(f"Compare: POST http://{Config.API_HOST}:{Config.API_PORT}/api/boq/compare")
    logger.info(f"Docs: http://{Config.API_HOST}:{Config.API_PORT}/docs")
    logger.info("=" * 50)


if __name__ == "__main__":
    log_banner()

    uvicorn.run(
        app,
        host=Config.API_HOST,
        port=Config.API_PORT,
        log_level=Config.LOG_LEVEL.lower()
    )
