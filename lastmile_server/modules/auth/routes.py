from fastapi import APIRouter, Depends
from lastmile_server.core.dependencies import enforce_rate_limit, require_api_key
from lastmile_server.modules.auth.models import ApiKeyData
from lastmile_server.modules.auth.schemas import ValidateResponse

router = APIRouter(tags=["auth"], dependencies=[Depends(enforce_rate_limit)])


@router.post("/validate", response_model=ValidateResponse)
async def validate_api_key(
    key_data: ApiKeyData = Depends(require_api_key)
):
    """Confirm the API key and return its account details"""
    return ValidateResponse(valid=True, account=key_data.name, tier=key_data.tier)
