# run_server.py
import logging
import uvicorn

from admin_console.core.config import settings

logger = logging.getLogger(__name__)


def main():
    """Запуск API консоли под uvicorn (для локальной разработки)."""
    logger.info("Starting admin console API server...")
    uvicorn.run(
        "admin_console.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        log_level=settings.LOGGING_LEVEL.lower(),
        reload=False,
    )


if __name__ == "__main__":
    main()
