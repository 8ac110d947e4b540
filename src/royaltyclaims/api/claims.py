import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from royaltyclaims.api.deps import get_assembler, get_claims_service, normalize_wallet
from royaltyclaims.api.schemas.claims import ClaimSubmitResponse
from royaltyclaims.domain.models.claims import AggregatedClaimsResult
from royaltyclaims.exceptions import (
    ClaimantMismatchError,
    ClaimSubmissionError,
    ConfigurationError,
    MissingAuthorizationError,
    NoHoldingsError,
    OrderbookMismatchError,
)
from royaltyclaims.settlement.assembler import TransactionAssembler
from royaltyclaims.settlement.service import ClaimsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/claims", tags=["claims"])

WalletDep = Annotated[str, Depends(normalize_wallet)]
ServiceDep = Annotated[ClaimsService, Depends(get_claims_service)]


@router.get("/{wallet}", response_model=AggregatedClaimsResult)
async def get_claims(wallet: WalletDep, service: ServiceDep) -> AggregatedClaimsResult:
    return await service.load_claims_for_wallet(wallet)


@router.post("/{wallet}/refresh", response_model=AggregatedClaimsResult)
async def refresh_claims(wallet: WalletDep, service: ServiceDep) -> AggregatedClaimsResult:
    """Drop the cached view for this wallet and rebuild it."""
    return await service.refresh(wallet)


@router.post("/{wallet}/claim", response_model=ClaimSubmitResponse)
async def claim_all(
    wallet: WalletDep,
    service: ServiceDep,
    assembler: TransactionAssembler = Depends(get_assembler),
) -> ClaimSubmitResponse:
    """Submit every unclaimed holding of `wallet` in one transaction.

    The configured sender account must be `wallet`: the payout goes to the
    transaction sender.
    """
    result = await service.load_claims_for_wallet(wallet)
    count = sum(len(g.holdings) for g in result.holdings)
    try:
        tx_hash = await assembler.claim_all(result.holdings, wallet)
    except NoHoldingsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except (ClaimantMismatchError, MissingAuthorizationError, OrderbookMismatchError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except ClaimSubmissionError as e:
        logger.warning("Claim submission for %s failed: %s", wallet, e)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    await service.refresh(wallet)
    return ClaimSubmitResponse(tx_hash=tx_hash, holdings_claimed=count)
