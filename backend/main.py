"""
ShopDesk — shop management API

FastAPI application providing REST endpoints for work orders, job lines,
parts, presets, the product catalog and email marketing.

Run with: uvicorn main:app (from backend/)
"""

import logging

from core.app import create_app, __version__  # noqa: F401
from core.config import settings

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug)
