from royaltyclaims.domain.enums.claim import ClaimStatus, HoldingStatus

__all__ = [
    "ClaimStatus",
    "HoldingStatus",
]
