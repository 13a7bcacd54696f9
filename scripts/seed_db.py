"""
Demo data seeding script

Creates one building with a few rooms, a tenant with an active contract,
an unpaid invoice and a staff account allowed to receive LINE notices:
    python scripts/seed_db.py
"""

import asyncio
import os
import sys
import logging
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

load_dotenv()

from motor.motor_asyncio import AsyncIOMotorClient

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)

MONGODB_URL = os.getenv("MONGODB_URL")
MONGODB_DB_NAME = os.getenv("MONGODB_DB_NAME", "dormline")

if not MONGODB_URL:
    raise ValueError("❌ MONGODB_URL must be set in .env file")


async def seed():
    logger.info(f"🔌 Connecting to MongoDB: {MONGODB_DB_NAME}")
    client = AsyncIOMotorClient(MONGODB_URL)
    db = client[MONGODB_DB_NAME]
    now = datetime.now(timezone.utc)

    try:
        await client.admin.command('ping')

        await db.buildings.replace_one(
            {"_id": "bld1"}, {"_id": "bld1", "code": "A", "name": "ตึก A"}, upsert=True
        )
        for number, floor in (("101", 1), ("102", 1), ("201", 2)):
            await db.rooms.replace_one(
                {"_id": f"room{number}"},
                {"_id": f"room{number}", "building_id": "bld1", "floor": floor, "number": number, "status": "OCCUPIED"},
                upsert=True,
            )
        logger.info("✅ Building and rooms")

        await db.tenants.replace_one(
            {"_id": "tenant1"},
            {"_id": "tenant1", "name": "สมชาย ใจดี", "phone": "0812345678", "line_user_id": None},
            upsert=True,
        )
        await db.contracts.replace_one(
            {"_id": "contract1"},
            {"_id": "contract1", "tenant_id": "tenant1", "room_id": "room101", "is_active": True, "start_date": now},
            upsert=True,
        )
        await db.invoices.replace_one(
            {"_id": "invoice1"},
            {
                "_id": "invoice1", "contract_id": "contract1", "month": now.month, "year": now.year,
                "total_amount": 2500, "status": "SENT", "created_at": now,
            },
            upsert=True,
        )
        logger.info("✅ Tenant, contract and invoice")

        await db.users.replace_one(
            {"_id": "staff1"},
            {
                "_id": "staff1", "name": "Staff", "role": "STAFF", "phone": "0899999999",
                "permissions": ["line_notify"], "line_user_id": None, "verify_code": "123456",
            },
            upsert=True,
        )
        logger.info("✅ Staff account (verify code 123456)")

        logger.info("\n🎉 Demo data ready")

    except Exception as e:
        logger.error(f"❌ Error: {e}")
        raise
    finally:
        client.close()


if __name__ == "__main__":
    asyncio.run(seed())
