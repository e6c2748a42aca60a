from pydantic import BaseModel


class ValidateResponse(BaseModel):
    valid: bool = True
    account: str
    tier: str
