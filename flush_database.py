import asyncio
from app.config import get_settings
from app.database import Database


async def flush_database():
    settings = get_settings()
    database = Database(settings.database_url, echo=settings.sql_echo)
    database.connect()
    try:
        print("⚠️ Dropping all tables...")
        await database.drop_tables()
        print("✅ All tables dropped successfully!")

        print("🚀 Recreating tables...")
        await database.create_tables()
        print("✅ All tables recreated successfully!")
    finally:
        await database.dispose()

if __name__ == "__main__":
    asyncio.run(flush_database())
