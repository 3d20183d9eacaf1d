"""API key management routes (admin only).

Values are never returned in full: listings show the last four characters.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from insight_core.api.deps import AdminUser, DBSession, SettingsDep
from insight_core.api.schemas.api_keys import (
    ApiKeyCreate,
    ApiKeyListResponse,
    ApiKeyResponse,
    DeleteResponse,
)
from insight_core.domain.flows.clients import get_api_key_service
from insight_core.domain.models import ApiKey
from insight_core.domain.services.api_keys import ApiKeyService, mask_key_value
from insight_core.domain.services.audit import AuditService
from insight_core.infrastructure.crypto import DecryptionError

router = APIRouter(prefix="/api-keys", tags=["api-keys"])


def get_api_keys(db: DBSession, settings: SettingsDep) -> ApiKeyService:
    """Get the API key service."""
    return get_api_key_service(db, settings)


ApiKeyServiceDep = Annotated[ApiKeyService, Depends(get_api_keys)]


def _to_response(service: ApiKeyService, api_key: ApiKey) -> ApiKeyResponse:
    try:
        masked = mask_key_value(service.decrypt_value(api_key))
    except DecryptionError:
        masked = "(cannot decrypt)"
    return ApiKeyResponse(
        id=api_key.id,
        service_name=api_key.service_name,
        masked_value=masked,
        description=api_key.description,
        added_by_user_id=api_key.added_by_user_id,
        created_at=api_key.created_at,
    )


@router.get("", response_model=ApiKeyListResponse)
async def list_api_keys(
    admin: AdminUser, service: ApiKeyServiceDep
) -> ApiKeyListResponse:
    """List stored credentials, newest first."""
    keys = service.get_api_keys()
    return ApiKeyListResponse(
        api_keys=[_to_response(service, k) for k in keys],
        total=len(keys),
    )


@router.post("", response_model=ApiKeyResponse, status_code=status.HTTP_201_CREATED)
async def add_api_key(
    request: ApiKeyCreate,
    admin: AdminUser,
    service: ApiKeyServiceDep,
    db: DBSession,
) -> ApiKeyResponse:
    """Store a credential under a service name."""
    try:
        api_key = service.add_api_key(
            request.service_name,
            request.key_value,
            description=request.description,
            added_by_user_id=admin.id,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    AuditService(db).record(
        "api_keys.create",
        entity_type="api_key",
        entity_id=api_key.id,
        request_json={"service_name": api_key.service_name},
    )
    return _to_response(service, api_key)


@router.delete("/{key_id}", response_model=DeleteResponse)
async def delete_api_key(
    key_id: str,
    admin: AdminUser,
    service: ApiKeyServiceDep,
    db: DBSession,
) -> DeleteResponse:
    """Delete a stored credential."""
    if not service.delete_api_key(key_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"API key {key_id} not found",
        )

    AuditService(db).record("api_keys.delete", entity_type="api_key", entity_id=key_id)
    return DeleteResponse()
