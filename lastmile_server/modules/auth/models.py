# In-memory table: api_keys
# Keyed by the raw X-API-Key value; seeded from settings at startup.

from pydantic import BaseModel


class ApiKeyData(BaseModel):
    name: str
    tier: str = "free"
    rate_limit: int = 100  # requests per minute
