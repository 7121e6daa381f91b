"""
MongoDB Setup Script
Tests the connection and initializes the database with collections and indexes.
"""
import asyncio
from marketlens.repositories import db_manager
from marketlens.config import settings

COLLECTIONS = ("projects", "documents", "segmentations", "focus_groups")


async def setup_mongodb():
    """Initialize the MarketLens database with collections and indexes."""
    print("🔄 Connecting to MongoDB...")
    print(f"   Database: {settings.mongodb_database}")
    print()

    try:
        await db_manager.connect()
        if not await db_manager.ping():
            raise RuntimeError(f"MongoDB did not answer a ping at {settings.mongodb_uri}")
        print("✅ Connection successful!")
        print()

        db = db_manager.database

        existing_collections = await db.list_collection_names()
        print(f"📦 Existing collections: {existing_collections or 'None'}")

        for name in COLLECTIONS:
            if name not in existing_collections:
                await db.create_collection(name)
                print(f"   ➕ Created collection: {name}")
        print()

        print("🔨 Creating indexes...")
        await db_manager.create_indexes()
        print("✅ Indexes created successfully!")
        print()

        print("📊 Verifying indexes:")
        total = 0
        for name in COLLECTIONS:
            indexes = await db[name].index_information()
            total += len(indexes)
            print(f"   {name}: {len(indexes)} indexes")
            for idx_name in indexes:
                print(f"      - {idx_name}")

        print()
        print("🎉 MongoDB setup complete!")
        print(f"   ✅ Collections: {', '.join(COLLECTIONS)}")
        print(f"   ✅ Indexes: {total} total")
        print()

    except Exception as e:
        print(f"❌ Error: {e}")
        print()
        print("💡 Troubleshooting:")
        print("   1. Check MONGODB_URI in your environment or .env")
        print("   2. Verify your IP is allowed by the server or Atlas Network Access")
        print("   3. Ensure the server or cluster is running")
        raise

    finally:
        await db_manager.disconnect()
        print("👋 Disconnected from MongoDB")


if __name__ == "__main__":
    asyncio.run(setup_mongodb())
