from enum import Enum


class ClaimStatus(str, Enum):
    """Status of a claim history entry."""

    COMPLETED = "completed"


class HoldingStatus(str, Enum):
    """Status shown for an unclaimed holding."""

    PRODUCING = "producing"
