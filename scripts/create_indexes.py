#!/usr/bin/env python3
"""
Script to create MongoDB indexes for the reading series
"""
import asyncio

from motor.motor_asyncio import AsyncIOMotorClient

from ttn_webhook.settings import Settings


async def create_indexes():
    """Create the newest-first indexes the read endpoints sort on"""
    settings = Settings()
    client = AsyncIOMotorClient(settings.mongo_uri)
    db = client[settings.mongo_db]

    print("Creating MongoDB indexes...")

    try:
        global_series = db[settings.global_collection]
        await global_series.create_index([("stored_at", -1), ("_id", -1)])
        print(f"✓ Created index: stored_at:-1, _id:-1 on {settings.global_collection}")

        await global_series.create_index([("device_id", 1), ("stored_at", -1)])
        print(f"✓ Created index: device_id:1, stored_at:-1 on {settings.global_collection}")

        # Device series only exist once a device has sent something, so
        # rerun this after new devices show up.
        names = await db.list_collection_names()
        device_series = sorted(n for n in names if n.startswith(settings.device_collection_prefix))
        for name in device_series:
            await db[name].create_index([("stored_at", -1), ("_id", -1)])
            print(f"✓ Created index: stored_at:-1, _id:-1 on {name}")

        print(f"\nAll indexes created successfully ({len(device_series)} device series)!")

    except Exception as e:
        print(f"Error creating indexes: {e}")
    finally:
        client.close()

if __name__ == "__main__":
    asyncio.run(create_indexes())
