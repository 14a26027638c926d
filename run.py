#!/usr/bin/env python3
"""Entry point for the StratWealth ledger API server."""

import asyncio
import logging

from aiohttp import web
from dotenv import load_dotenv

# Load environment variables before importing settings
load_dotenv()

from config import settings
from database.connection import Database
from core.application import build_services, create_application


# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
)
logger = logging.getLogger(__name__)


async def main():
    """Initialize and run the API server."""
    logger.info("Starting StratWealth ledger API...")

    # Initialize database
    db = Database(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )
    await db.initialize()
    logger.info("Database initialized")

    services = build_services(db)
    if not settings.email_enabled:
        logger.warning("SMTP_HOST not set. Notification emails are disabled.")
    if not settings.push_enabled:
        logger.warning("VAPID keys not set. Web push is disabled.")

    app = create_application(db, services)

    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, settings.api_host, settings.api_port)
    await site.start()

    logger.info(f"API server running on http://{settings.api_host}:{settings.api_port}")

    # Keep running until interrupted
    try:
        while True:
            await asyncio.sleep(1)
    except asyncio.CancelledError:
        pass
    finally:
        await runner.cleanup()
        # Let queued emails and pushes finish before closing the pool
        await services.delivery.drain()
        await db.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("API server stopped by user")
    except Exception as e:
        logger.error(f"API server crashed: {e}")
        raise
