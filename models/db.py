from motor.motor_asyncio import AsyncIOMotorClient

from config import DB_HOST, DB_NAME, DB_PORT, MONGO_URI

if MONGO_URI:
    client = AsyncIOMotorClient(MONGO_URI)
else:
    client = AsyncIOMotorClient(f"mongodb://{DB_HOST}:{DB_PORT}")

db = client[DB_NAME]
