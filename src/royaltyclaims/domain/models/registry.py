"""Static claim registry: energy field → SFT tokens → payout batches."""

from collections.abc import Iterator

from pydantic import BaseModel

from royaltyclaims.domain.models.claims import ClaimSource


class ClaimConfig(BaseModel):
    order_hash: str
    csv_link: str
    expected_merkle_root: str
    expected_content_hash: str


class SftToken(BaseModel):
    address: str
    claims: list[ClaimConfig] = []


class EnergyField(BaseModel):
    name: str
    sft_tokens: list[SftToken] = []


def iter_claim_sources(fields: list[EnergyField]) -> Iterator[ClaimSource]:
    """Flatten the registry into ClaimSources, skipping batches without a ledger link."""
    for field in fields:
        for token in field.sft_tokens:
            for claim in token.claims:
                if not claim.csv_link:
                    continue
                yield ClaimSource(
                    csv_link=claim.csv_link,
                    expected_merkle_root=claim.expected_merkle_root,
                    expected_content_hash=claim.expected_content_hash,
                    order_hash=claim.order_hash,
                    field_name=field.name,
                    token_address=token.address,
                )
