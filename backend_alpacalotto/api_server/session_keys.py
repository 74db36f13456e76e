"""
Session key routes: create, revoke and inspect the owner's current key.

Create and revoke must be signed by the owner wallet. The store's per-owner
lock keeps a revoke from interleaving with a concurrent read of the same key.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from backend_alpacalotto.api_server.dependencies import Services, get_services
from backend_alpacalotto.api_server.schemas import CreateSessionKeyRequest, RevokeSessionKeyRequest
from backend_alpacalotto.auth.signatures import session_key_create_message, session_key_revoke_message
from backend_alpacalotto.core.addresses import checksum
from backend_alpacalotto.core.exceptions import InvalidInput, NotFound
from backend_alpacalotto.lotto_logging import bind_owner
from backend_alpacalotto.session_keys.manager import validate_duration

router = APIRouter(prefix="/api", tags=["session-keys"])


@router.post("/create-session-key")
def create_session_key(body: CreateSessionKeyRequest, services: Services = Depends(get_services)) -> dict[str, Any]:
    if body.duration is None:
        raise InvalidInput("Duration is required")
    if not body.owner_address:
        raise InvalidInput("ownerAddress is required")
    owner = checksum(body.owner_address, "ownerAddress")
    key_address = checksum(body.session_key_address, "sessionKeyAddress") if body.session_key_address else None
    duration = validate_duration(body.duration)
    log = bind_owner(owner)

    message = session_key_create_message(key_address, duration)
    services.verifier.verify(message, body.signature, owner)

    with services.session_store.owner_lock(owner):
        key = services.session_keys.create(owner, duration, key_address=key_address)
        key = services.session_store.save(key)
    log.info("session_key_issued", key_id=key.id, expires_at=key.expires_at)
    return {"success": True, "sessionKey": services.session_keys.describe(key)}


@router.post("/revoke-session-key")
def revoke_session_key(body: RevokeSessionKeyRequest, services: Services = Depends(get_services)) -> dict[str, Any]:
    if not body.owner_address:
        raise InvalidInput("ownerAddress is required")
    owner = checksum(body.owner_address, "ownerAddress")
    key_address = checksum(body.session_key_address, "sessionKeyAddress") if body.session_key_address else None

    services.verifier.verify(session_key_revoke_message(key_address), body.signature, owner)

    with services.session_store.owner_lock(owner):
        if key_address:
            key = services.session_store.find(owner, key_address)
        else:
            key = services.session_store.latest_for_owner(owner)
        if key is None:
            raise NotFound("Session key not found")
        revoked = services.session_keys.revoke(key)
        if revoked is not key:
            revoked = services.session_store.save(revoked)
    return {"success": True, "sessionKey": services.session_keys.describe(revoked)}


@router.get("/session-key/{owner}")
def get_session_key(
    owner: str,
    warn_within: int = Query(0, alias="warnWithin", ge=0),
    services: Services = Depends(get_services),
) -> dict[str, Any]:
    owner = checksum(owner, "address")
    with services.session_store.owner_lock(owner):
        key = services.session_store.latest_for_owner(owner)
        if key is None:
            raise NotFound("Session key not found")
        return {"success": True, "sessionKey": services.session_keys.describe(key, warn_within)}
