"""
MongoDB Queue Setup Script
Tests connection and creates the indexes a queue collection needs.

Usage:
    python setup_mongodb.py [collection_name]
"""
import asyncio
import sys
from mongo_queue.repositories import db_manager
from mongo_queue.config import settings


async def setup_mongodb(collection_name: str):
    """Initialize the queue collection with its indexes."""
    print("🔄 Connecting to MongoDB...")
    print(f"   Database: {settings.mongodb_database}")
    print(f"   Collection: {collection_name}")
    print()

    try:
        await db_manager.connect()
        await db_manager.client.admin.command("ping")
        print("✅ Connection successful!")
        print()

        db = db_manager.database

        existing_collections = await db.list_collection_names()
        print(f"📦 Existing collections: {existing_collections or 'None'}")
        print()

        print("🔨 Creating indexes...")
        await db_manager.create_indexes(collection_name)
        print("✅ Indexes created successfully!")
        print()

        indexes = await db_manager.get_collection(collection_name).index_information()
        print(f"📊 {collection_name}: {len(indexes)} indexes")
        for idx_name in indexes:
            print(f"      - {idx_name}")
        print()

    except Exception as e:
        print(f"❌ Error: {e}")
        print()
        print("💡 Troubleshooting:")
        print("   1. Check MONGODB_URI and MONGODB_DATABASE")
        print("   2. Check that the username and password are correct")
        print("   3. Ensure the server is reachable from this host")
        raise

    finally:
        await db_manager.disconnect()
        print("👋 Disconnected from MongoDB")


if __name__ == "__main__":
    name = sys.argv[1] if len(sys.argv) > 1 else settings.queue_collection_name
    asyncio.run(setup_mongodb(name))
