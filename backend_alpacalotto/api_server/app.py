"""
ASGI application entrypoint.

Run with: uvicorn backend_alpacalotto.api_server.app:app --host 0.0.0.0 --port 3001
"""

from backend_alpacalotto.api_server.server import create_app
from backend_alpacalotto.config.env import load_lotto_env

load_lotto_env()

app = create_app()

__all__ = ["app"]
