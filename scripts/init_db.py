"""
Database initialization script

Run once (or after schema changes) to create indexes:
    python scripts/init_db.py
    python scripts/init_db.py --drop    # drop custom indexes first
"""

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

from app.core.logging import setup_logging, get_logger  # noqa: E402
from app.db.mongo import connect_to_mongo, close_mongo_connection  # noqa: E402
from app.db.indexes import create_indexes, drop_all_indexes  # noqa: E402

setup_logging()
logger = get_logger("scripts.init_db")


async def main(drop: bool):
    await connect_to_mongo()
    try:
        if drop:
            await drop_all_indexes()
        await create_indexes()
        logger.info("Database initialized")
    finally:
        await close_mongo_connection()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create RoomMatch MongoDB indexes")
    parser.add_argument("--drop", action="store_true", help="Drop custom indexes before creating them")
    args = parser.parse_args()
    asyncio.run(main(args.drop))
