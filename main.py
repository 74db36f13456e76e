"""
Main entrypoint: AlpacaLotto API server.

Loads .env, builds settings, and runs the FastAPI app under uvicorn.

Env: PORT (default 3001), API_HOST, NERO_RPC_URL, LOTTERY_CONTRACT_ADDRESS,
RELAYER_PRIVATE_KEY, DATABASE_URL / DB_PATH, LOG_LEVEL, etc.

Equivalent: uvicorn backend_alpacalotto.api_server.app:app --host 0.0.0.0 --port 3001
"""

import os
import sys

# Configure structured JSON logging before other imports that may log
from backend_alpacalotto.lotto_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Build the app from the environment and serve it in the main thread."""
    from backend_alpacalotto.config import get_settings
    from backend_alpacalotto.config.env import load_lotto_env

    load_lotto_env()
    try:
        settings = get_settings()
    except ValueError as e:
        logger.error("main_config_error", error=str(e))
        sys.exit(1)

    from backend_alpacalotto.api_server.server import create_app
    import uvicorn

    app = create_app(settings)
    logger.info("main_server_starting", host=settings.api_host, port=settings.api_port)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=os.getenv("LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
