"""
app/db/indexes.py

Purpose: Database index management

- Lookup indexes for LINE identities and phone numbers
- Status indexes for unpaid invoice and pending maintenance queries
- Idempotent, run at startup
"""

from app.db.mongo import get_collection
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes for optimal performance.
    This function is idempotent - safe to run multiple times.
    """
    try:
        logger.info("Creating database indexes...")

        tenants = get_collection("tenants")
        await tenants.create_index("line_user_id", name="tenant_line_user_idx")
        await tenants.create_index("phone", name="tenant_phone_idx")
        logger.debug("Created indexes on tenants.line_user_id, tenants.phone")

        contacts = get_collection("room_contacts")
        await contacts.create_index("line_user_id", name="contact_line_user_idx")
        await contacts.create_index("room_id", name="contact_room_idx")
        logger.debug("Created indexes on room_contacts")

        rooms = get_collection("rooms")
        await rooms.create_index(
            [("building_id", 1), ("floor", 1), ("number", 1)],
            name="room_location_idx"
        )
        logger.debug("Created compound index on rooms.building_id + floor + number")

        contracts = get_collection("contracts")
        await contracts.create_index(
            [("room_id", 1), ("is_active", 1), ("start_date", -1)],
            name="contract_room_active_idx"
        )
        await contracts.create_index(
            [("tenant_id", 1), ("is_active", 1)],
            name="contract_tenant_active_idx"
        )
        logger.debug("Created indexes on contracts")

        invoices = get_collection("invoices")
        await invoices.create_index(
            [("contract_id", 1), ("status", 1), ("created_at", -1)],
            name="invoice_contract_status_idx"
        )
        await invoices.create_index(
            [("contract_id", 1), ("year", 1), ("month", 1)],
            name="invoice_period_idx"
        )
        logger.debug("Created indexes on invoices")

        payments = get_collection("payments")
        await payments.create_index("invoice_id", name="payment_invoice_idx")
        logger.debug("Created index on payments.invoice_id")

        maintenance = get_collection("maintenance_requests")
        await maintenance.create_index(
            [("status", 1), ("created_at", -1)],
            name="maintenance_status_idx"
        )
        logger.debug("Created index on maintenance_requests.status")

        users = get_collection("users")
        await users.create_index("phone", name="user_phone_idx")
        await users.create_index("line_user_id", name="user_line_user_idx")
        logger.debug("Created indexes on users")

        logger.info("✅ All database indexes created successfully")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise


if __name__ == "__main__":
    """
    Run this script directly to create indexes manually.
    """
    import asyncio
    from app.db.mongo import connect_to_mongo, close_mongo_connection

    async def main():
        await connect_to_mongo()
        await create_indexes()
        await close_mongo_connection()

    asyncio.run(main())
