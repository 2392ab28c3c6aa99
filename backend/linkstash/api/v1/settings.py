"""Settings API endpoints: the user's LLM API key."""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from linkstash.agents.llm import LLMClient, check_connection
from linkstash.api.deps import get_key_provider, get_llm
from linkstash.services.credentials import StoredApiKeyProvider

router = APIRouter(prefix="/settings", tags=["settings"])


class ApiKeyStatus(BaseModel):
    has_user_key: bool
    provider: str


class ApiKeyUpdate(BaseModel):
    api_key: str = Field(..., min_length=1)


class ConnectionTestResponse(BaseModel):
    success: bool
    message: str


@router.get("/api-key", response_model=ApiKeyStatus)
async def get_api_key_status(
    keys: StoredApiKeyProvider = Depends(get_key_provider),
) -> ApiKeyStatus:
    """Whether a user key is stored. The key itself is never returned."""
    return ApiKeyStatus(has_user_key=await keys.has_user_key(), provider=keys.settings.llm_provider)


@router.put("/api-key", response_model=ApiKeyStatus)
async def save_api_key(
    payload: ApiKeyUpdate,
    keys: StoredApiKeyProvider = Depends(get_key_provider),
) -> ApiKeyStatus:
    await keys.save_user_key(payload.api_key.strip())
    return ApiKeyStatus(has_user_key=await keys.has_user_key(), provider=keys.settings.llm_provider)


@router.delete("/api-key", status_code=status.HTTP_204_NO_CONTENT)
async def delete_api_key(
    keys: StoredApiKeyProvider = Depends(get_key_provider),
) -> None:
    await keys.delete_user_key()


@router.post("/api-key/test", response_model=ConnectionTestResponse)
async def test_api_key(llm: LLMClient = Depends(get_llm)) -> ConnectionTestResponse:
    """Send a tiny prompt with the active key."""
    success, message = await check_connection(llm)
    return ConnectionTestResponse(success=success, message=message)
