# main.py
import asyncio
import logging
from greengrove.app import GreenGroveAPI
from greengrove.config import setup_logging

async def main():
    # Setup logging
    setup_logging()
    logger = logging.getLogger(__name__)

    try:
        # Initialize and start API
        api = GreenGroveAPI()
        logger.info("Starting API...")
        await api.start()
    except Exception as e:
        logger.error(f"Error starting API: {e}", exc_info=True)
        raise

if __name__ == "__main__":
    asyncio.run(main())
