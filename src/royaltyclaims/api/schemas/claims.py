from pydantic import BaseModel


class ClaimSubmitResponse(BaseModel):
    tx_hash: str
    holdings_claimed: int


class HypersyncProxyRequest(BaseModel):
    client: str
    from_block: int
    logs: list[dict]
    field_selection: dict
    to_block: int | None = None
