"""Tests for HypersyncClient — paginated log retrieval."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from factories import EVENT_TOPIC, ORDERBOOK, mock_response
from royaltyclaims.exceptions import FetchError
from royaltyclaims.infra.http.retry import NO_RETRY
from royaltyclaims.infra.hypersync.client import HypersyncClient, build_log_query, flatten_entries

URL = "https://8453.hypersync.xyz/query"


def _page(block: int, tx_hash: str, next_block, timestamp: str = "0x6553f100", log_index: int = 0) -> dict:
    return {
        "data": [
            {
                "blocks": [{"number": block, "timestamp": timestamp}],
                "logs": [
                    {
                        "block_number": block,
                        "log_index": log_index,
                        "transaction_hash": tx_hash,
                        "data": "0xabcd",
                        "address": ORDERBOOK,
                        "topic0": EVENT_TOPIC,
                    }
                ],
            }
        ],
        "next_block": next_block,
    }


@pytest.fixture()
def mock_http():
    http = MagicMock()
    http.post = AsyncMock()
    return http


@pytest.fixture()
def client(mock_http):
    return HypersyncClient(mock_http, URL, api_key="secret", retry=NO_RETRY)


class TestBuildQuery:
    def test_shape(self):
        body = build_log_query(100, ORDERBOOK, EVENT_TOPIC)
        assert body["from_block"] == 100
        assert body["logs"] == [{"address": [ORDERBOOK], "topics": [[EVENT_TOPIC]]}]
        assert "timestamp" in body["field_selection"]["block"]
        assert "transaction_hash" in body["field_selection"]["log"]


class TestFlatten:
    def test_joins_block_timestamp(self):
        logs = flatten_entries(_page(100, "0xaaa", None)["data"])
        assert len(logs) == 1
        assert logs[0].timestamp == 1700000000
        assert logs[0].block_number == 100

    def test_malformed_log_skipped(self):
        entries = [{"blocks": [], "logs": [{"transaction_hash": "0xaaa"}]}]
        assert flatten_entries(entries) == []

    def test_malformed_block_number_skipped(self):
        entries = _page(100, "0xaaa", None)["data"]
        entries[0]["blocks"].insert(0, {"number": "not-a-block", "timestamp": "0x1"})
        logs = flatten_entries(entries)
        assert len(logs) == 1
        assert logs[0].timestamp == 1700000000


class TestQuery:
    async def test_bearer_header(self, client, mock_http):
        mock_http.post.return_value = mock_response(json_data={"data": [], "next_block": 1})
        await client.query({"from_block": 0})
        _, kwargs = mock_http.post.call_args
        assert kwargs["headers"] == {"Authorization": "Bearer secret"}

    async def test_status_error(self, client, mock_http):
        mock_http.post.return_value = mock_response(status_code=503)
        with pytest.raises(FetchError) as exc:
            await client.query({"from_block": 0})
        assert exc.value.status_code == 503

    async def test_transport_error(self, client, mock_http):
        mock_http.post.side_effect = httpx.ConnectError("refused")
        with pytest.raises(FetchError):
            await client.query({"from_block": 0})


class TestFetchLogs:
    async def test_follows_next_block(self, client, mock_http):
        mock_http.post.side_effect = [
            mock_response(json_data=_page(100, "0xaaa", 150)),
            mock_response(json_data=_page(160, "0xbbb", 201)),
        ]
        logs = await client.fetch_logs(ORDERBOOK, EVENT_TOPIC, 100, 200)
        assert [log.transaction_hash for log in logs] == ["0xaaa", "0xbbb"]
        assert mock_http.post.await_count == 2
        second_body = mock_http.post.call_args_list[1].kwargs["json"]
        assert second_body["from_block"] == 150

    async def test_stalled_cursor_stops_after_one_page(self, client, mock_http):
        mock_http.post.return_value = mock_response(json_data=_page(100, "0xaaa", 100))
        logs = await client.fetch_logs(ORDERBOOK, EVENT_TOPIC, 100, 500)
        assert mock_http.post.await_count == 1
        assert len(logs) == 1

    async def test_missing_cursor_stops(self, client, mock_http):
        mock_http.post.return_value = mock_response(json_data=_page(100, "0xaaa", None))
        await client.fetch_logs(ORDERBOOK, EVENT_TOPIC, 100, 500)
        assert mock_http.post.await_count == 1

    async def test_unparseable_cursor_keeps_earlier_pages(self, client, mock_http):
        mock_http.post.side_effect = [
            mock_response(json_data=_page(100, "0xaaa", 150)),
            mock_response(json_data=_page(160, "0xbbb", "garbage")),
        ]
        logs = await client.fetch_logs(ORDERBOOK, EVENT_TOPIC, 100, 500)
        assert [log.transaction_hash for log in logs] == ["0xaaa", "0xbbb"]
        assert mock_http.post.await_count == 2

    async def test_page_failure_keeps_partial_results(self, client, mock_http):
        mock_http.post.side_effect = [
            mock_response(json_data=_page(100, "0xaaa", 150)),
            mock_response(status_code=500),
        ]
        logs = await client.fetch_logs(ORDERBOOK, EVENT_TOPIC, 100, 200)
        assert [log.transaction_hash for log in logs] == ["0xaaa"]

    async def test_first_page_failure_returns_empty(self, client, mock_http):
        mock_http.post.return_value = mock_response(status_code=500)
        assert await client.fetch_logs(ORDERBOOK, EVENT_TOPIC, 100, 200) == []

    async def test_filters_by_transaction_hash(self, client, mock_http):
        page = _page(100, "0xAAA", None)
        page["data"][0]["logs"].append({**page["data"][0]["logs"][0], "transaction_hash": "0xccc", "log_index": 1})
        mock_http.post.return_value = mock_response(json_data=page)
        logs = await client.fetch_logs(ORDERBOOK, EVENT_TOPIC, 100, 100, tx_hashes={"0xaaa"})
        assert [log.transaction_hash for log in logs] == ["0xAAA"]

    async def test_duplicate_logs_collapsed(self, client, mock_http):
        mock_http.post.side_effect = [
            mock_response(json_data=_page(100, "0xaaa", 150)),
            mock_response(json_data=_page(100, "0xaaa", None)),
        ]
        logs = await client.fetch_logs(ORDERBOOK, EVENT_TOPIC, 100, 200)
        assert len(logs) == 1
