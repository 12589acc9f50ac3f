import certifi
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from bgremoval.core.config import get_settings
from bgremoval.models.audit_log import AuditLog
from bgremoval.models.transaction import Transaction
from bgremoval.models.user import User

DOCUMENT_MODELS = [
    User,
    Transaction,
    AuditLog,
]


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true). Avoids TLS for plain mongodb:// in CI."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


async def init_db(client=None) -> None:
    """Connect Beanie. `client` lets tests pass an in-memory Motor-compatible client."""
    settings = get_settings()
    if client is None:
        kwargs = {}
        if _use_tls(settings.mongodb_uri):
            kwargs["tlsCAFile"] = certifi.where()
            kwargs["tlsDisableOCSPEndpointCheck"] = True
        client = AsyncIOMotorClient(settings.mongodb_uri, **kwargs)
    database = client[settings.mongodb_db_name]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
