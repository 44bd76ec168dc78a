import asyncio
from app.config import get_settings
from app.database import Database


async def create_tables():
    settings = get_settings()
    database = Database(settings.database_url, echo=settings.sql_echo)
    database.connect()
    try:
        print("🚀 Creating database tables...")
        await database.create_tables()
        print("✅ All tables created successfully!")
    finally:
        await database.dispose()


if __name__ == "__main__":
    asyncio.run(create_tables())
