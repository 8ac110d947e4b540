"""Hypersync client — paginated event-log retrieval for a contract + topic."""

import logging
from typing import Any

import httpx
from pydantic import BaseModel

from royaltyclaims.exceptions import FetchError
from royaltyclaims.infra.http.rate_limited_client import RateLimitedClient
from royaltyclaims.infra.http.retry import RetryPolicy

logger = logging.getLogger(__name__)

LOG_FIELDS = [
    "block_number",
    "log_index",
    "transaction_index",
    "transaction_hash",
    "data",
    "address",
    "topic0",
]
BLOCK_FIELDS = ["number", "timestamp"]

MAX_PAGES = 1000


class HypersyncLog(BaseModel):
    """One log joined with the timestamp of its block (when returned)."""

    block_number: int
    log_index: int = 0
    transaction_hash: str = ""
    data: str = "0x"
    address: str = ""
    topic0: str = ""
    timestamp: int | None = None


def _as_int(value: Any, base: int = 10) -> int | None:
    """Hypersync returns quantities either as JSON numbers or as hex strings."""
    if value is None or value == "":
        return None
    if isinstance(value, int):
        return value
    text = str(value)
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text, base)


def build_log_query(from_block: int, contract_address: str, topic: str) -> dict:
    return {
        "from_block": from_block,
        "logs": [{"address": [contract_address], "topics": [[topic]]}],
        "field_selection": {"log": LOG_FIELDS, "block": BLOCK_FIELDS},
    }


def flatten_entries(entries: list[dict]) -> list[HypersyncLog]:
    """Join each log with its block timestamp. Malformed logs are skipped."""
    logs: list[HypersyncLog] = []
    for entry in entries:
        block_times: dict[int, int | None] = {}
        for block in entry.get("blocks") or []:
            try:
                number = _as_int(block.get("number"))
                # block timestamps are hex quantities
                timestamp = _as_int(block.get("timestamp"), base=16)
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed Hypersync block %r: %s", block, e)
                continue
            if number is not None:
                block_times[number] = timestamp
        for raw in entry.get("logs") or []:
            try:
                block_number = _as_int(raw.get("block_number"))
                if block_number is None:
                    raise ValueError("missing block_number")
                logs.append(
                    HypersyncLog(
                        block_number=block_number,
                        log_index=_as_int(raw.get("log_index")) or 0,
                        transaction_hash=raw.get("transaction_hash") or "",
                        data=raw.get("data") or "0x",
                        address=raw.get("address") or "",
                        topic0=raw.get("topic0") or "",
                        timestamp=block_times.get(block_number),
                    )
                )
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed Hypersync log %r: %s", raw, e)
    return logs


class HypersyncClient:
    def __init__(
        self,
        http_client: RateLimitedClient,
        url: str,
        api_key: str = "",
        retry: RetryPolicy | None = None,
    ) -> None:
        self._http = http_client
        self._url = url
        self._api_key = api_key
        self._retry = retry or RetryPolicy()

    @property
    def url(self) -> str:
        return self._url

    async def query(self, body: dict) -> dict:
        """POST one query page. Raises FetchError on transport, status or decode failure."""
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else None
        try:
            resp = await self._http.post(self._url, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise FetchError(f"Hypersync request failed: {e}", url=self._url) from e
        if resp.status_code >= 400:
            raise FetchError(f"Hypersync returned {resp.status_code}", url=self._url, status_code=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise FetchError(f"Hypersync returned invalid JSON: {e}", url=self._url) from e
        if not isinstance(data, dict):
            raise FetchError("Hypersync returned an unexpected payload", url=self._url)
        return data

    async def fetch_logs(
        self,
        contract_address: str,
        topic: str,
        from_block: int,
        to_block: int,
        tx_hashes: set[str] | None = None,
    ) -> list[HypersyncLog]:
        """Collect all logs in [from_block, to_block], following `next_block`.

        Pages are fetched sequentially. Pagination ends when the cursor is
        missing, stalls or passes `to_block`. A page that still fails after
        retries ends pagination; logs gathered so far are returned.
        """
        entries: list[dict] = []
        current = from_block
        pages = 0

        while current <= to_block:
            try:
                page = await self._retry.call(self.query, build_log_query(current, contract_address, topic))
            except FetchError as e:
                logger.warning(
                    "Hypersync page from block %d failed, keeping %d partial pages: %s", current, pages, e
                )
                break
            pages += 1

            data = page.get("data") or []
            if isinstance(data, list):
                entries.extend(d for d in data if isinstance(d, dict))

            try:
                next_block = _as_int(page.get("next_block"))
            except (TypeError, ValueError):
                logger.warning(
                    "Unparseable Hypersync cursor %r after block %d, stopping", page.get("next_block"), current
                )
                break
            if not next_block or next_block == current or next_block > to_block:
                break
            if pages >= MAX_PAGES:
                logger.warning("Hypersync pagination stopped after %d pages at block %d", pages, next_block)
                break
            current = next_block

        logs = flatten_entries(entries)

        seen: set[tuple[str, int]] = set()
        unique: list[HypersyncLog] = []
        for log in logs:
            key = (log.transaction_hash.lower(), log.log_index)
            if key in seen:
                continue
            seen.add(key)
            unique.append(log)

        if tx_hashes:
            wanted = {h.lower() for h in tx_hashes}
            unique = [log for log in unique if log.transaction_hash.lower() in wanted]

        logger.debug("Hypersync returned %d logs in %d pages for [%d, %d]", len(unique), pages, from_block, to_block)
        return unique
