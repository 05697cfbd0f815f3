"""
app/db/indexes.py

Purpose: Database index management

- Creates unique and lookup indexes
- Idempotent: safe to run on every startup
"""

from pymongo import ASCENDING

from app.db.mongo import get_users_collection, get_chats_collection
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes.
    """
    try:
        users = get_users_collection()
        chats = get_chats_collection()

        logger.info("Creating database indexes...")

        # ==============================================
        # USERS COLLECTION INDEXES
        # ==============================================

        await users.create_index([("user_id", ASCENDING)], unique=True, name="user_id_unique")
        logger.debug("Created unique index on users.user_id")

        # Stripe webhooks resolve users by customer
        await users.create_index([("customer_id", ASCENDING)], sparse=True, name="customer_id_idx")
        logger.debug("Created index on users.customer_id")

        await users.create_index([("square_merchant_id", ASCENDING)], sparse=True, name="square_merchant_idx")
        logger.debug("Created index on users.square_merchant_id")

        # ==============================================
        # CHATS COLLECTION INDEXES
        # ==============================================

        # One survey chat per user
        await chats.create_index([("user_id", ASCENDING)], unique=True, name="chat_user_unique")
        logger.debug("Created unique index on chats.user_id")

        user_indexes = await users.index_information()
        chat_indexes = await chats.index_information()
        logger.info(f"Index summary: Users={len(user_indexes)}, Chats={len(chat_indexes)}")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise


async def drop_all_indexes():
    """
    Drops all custom indexes (keeps _id index).
    Only for maintenance/migration.
    """
    users = get_users_collection()
    chats = get_chats_collection()

    logger.warning("Dropping all database indexes...")
    await users.drop_indexes()
    await chats.drop_indexes()
    logger.info("All indexes dropped")
