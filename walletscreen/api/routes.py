"""API route definitions."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from walletscreen.api.dependencies import (
    get_blacklist_store,
    get_screening_service,
    get_wallet_service,
)
from walletscreen.config import Settings, get_settings
from walletscreen.core.blacklist import BlacklistStore
from walletscreen.core.exceptions import (
    BlacklistEntryExistsError,
    InvalidAddressError,
    ProviderError,
    WalletNotFoundError,
)
from walletscreen.models.blockchain import BlacklistEntry
from walletscreen.models.wallet import (
    BlacklistEntryCreate,
    HealthResponse,
    ScreeningRequest,
    WalletDetail,
    WalletRecord,
)
from walletscreen.services.normalizer import normalize_address, normalize_chain
from walletscreen.services.screening import ScreeningService
from walletscreen.services.wallet_service import WalletService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["screening"])


@router.post(
    "/screening",
    summary="Screen Address",
    description="Screen an address against the internal blacklist without storing the outcome.",
)
async def screen_address(
    request: ScreeningRequest,
    screening: Annotated[ScreeningService, Depends(get_screening_service)],
) -> dict[str, Any]:
    """
    Run the screening engine and return the flattened result.

    - **address**: 0x-prefixed, 40 hex character address
    - **chain**: Blockchain network (default: ethereum)
    """
    try:
        result = await screening.screen(request.chain, request.address)
    except InvalidAddressError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except ProviderError as e:
        logger.error(f"Provider failure while screening {request.address}: {e.message}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)
    return result.to_record()


@router.post(
    "/wallets",
    status_code=status.HTTP_201_CREATED,
    summary="Onboard Wallet",
    description="Create (or re-screen) a wallet and store its screening log.",
)
async def onboard_wallet(
    request: ScreeningRequest,
    wallets: Annotated[WalletService, Depends(get_wallet_service)],
) -> dict[str, Any]:
    """Create a wallet and screen it."""
    try:
        wallet_id, result = await wallets.onboard(request.chain, request.address)
    except InvalidAddressError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    return {"wallet_id": wallet_id, "screening": result.to_record()}


@router.get(
    "/wallets",
    response_model=list[WalletRecord],
    summary="List Wallets",
)
async def list_wallets(
    wallets: Annotated[WalletService, Depends(get_wallet_service)],
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> list[WalletRecord]:
    """List onboarded wallets, newest first."""
    return await wallets.list_wallets(limit=limit, offset=offset)


@router.get(
    "/wallets/{wallet_id}",
    response_model=WalletDetail,
    summary="Wallet Detail",
)
async def get_wallet(
    wallet_id: int,
    wallets: Annotated[WalletService, Depends(get_wallet_service)],
) -> WalletDetail:
    """Get a wallet with its latest screening log."""
    try:
        return await wallets.get_wallet_detail(wallet_id)
    except WalletNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.get(
    "/blacklist",
    response_model=list[BlacklistEntry],
    summary="List Blacklist",
)
async def list_blacklist(
    store: Annotated[BlacklistStore, Depends(get_blacklist_store)],
) -> list[BlacklistEntry]:
    """List all blacklist entries, newest first."""
    return await store.list_entries()


@router.post(
    "/blacklist",
    response_model=BlacklistEntry,
    status_code=status.HTTP_201_CREATED,
    summary="Add Blacklist Entry",
)
async def add_blacklist_entry(
    request: BlacklistEntryCreate,
    store: Annotated[BlacklistStore, Depends(get_blacklist_store)],
) -> BlacklistEntry:
    """Add an address to the internal blacklist."""
    try:
        address = normalize_address(request.address)
    except InvalidAddressError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    try:
        return await store.add_entry(
            chain=normalize_chain(request.chain),
            address=address,
            category=request.category.strip() or "internal",
            note=(request.note or "").strip() or None,
        )
    except BlacklistEntryExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)


@router.delete(
    "/blacklist/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Blacklist Entry",
)
async def delete_blacklist_entry(
    entry_id: int,
    store: Annotated[BlacklistStore, Depends(get_blacklist_store)],
) -> None:
    """Remove an entry from the internal blacklist."""
    if not await store.delete_entry(entry_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Blacklist entry {entry_id} not found",
        )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Check API and blacklist store health status.",
)
async def health_check(
    store: Annotated[BlacklistStore, Depends(get_blacklist_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """Check API health and blacklist store connectivity."""
    store_healthy = await store.ping()

    return HealthResponse(
        status="healthy" if store_healthy else "degraded",
        version=settings.app_version,
        transaction_source=settings.transaction_source,
        blacklist_status="connected" if store_healthy else "disconnected",
    )
