from motor.motor_asyncio import AsyncIOMotorClient
from core.config import settings

VALID_URI_PREFIXES = ("mongodb://", "mongodb+srv://")

def create_client(uri: str) -> AsyncIOMotorClient:
    """Builds a motor client; does not touch the network until first use."""
    uri = uri.strip()
    if not uri.startswith(VALID_URI_PREFIXES):
        raise ValueError(f"Invalid MongoDB URI format: {uri[:20]}...")

    return AsyncIOMotorClient(
        uri,
        serverSelectionTimeoutMS=settings.MONGO_TIMEOUT_MS,
        connectTimeoutMS=settings.MONGO_TIMEOUT_MS,
    )
