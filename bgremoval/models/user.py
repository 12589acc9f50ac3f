from datetime import datetime

from beanie import Document, Indexed
from pydantic import Field


class User(Document):
    """Mirror of a Clerk user, owned by the identity webhook."""

    clerk_id: Indexed(str, unique=True)
    email: str
    first_name: str | None = None
    last_name: str | None = None
    photo: str | None = None
    credit_balance: int = 5
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "users"
