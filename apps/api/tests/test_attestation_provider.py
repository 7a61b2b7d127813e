"""Tests for anchor hash extraction and the HTTP provider."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

from opshub_api.attestation.provider import HttpAnchoringProvider, extract_anchor_hash


def test_primary_tree_hash_wins():
    result = {
        "tag": "ok",
        "data": {"aquaTree": {"tree": {"hash": "0xprimary"}, "treeMapping": {"latestHash": "0xfallback"}}},
    }
    assert extract_anchor_hash(result) == "0xprimary"


def test_falls_back_to_latest_mapping_hash():
    result = {"tag": "ok", "data": {"aquaTree": {"treeMapping": {"latestHash": "0xfallback"}}}}
    assert extract_anchor_hash(result) == "0xfallback"


def test_empty_primary_falls_back():
    result = {
        "tag": "ok",
        "data": {"aquaTree": {"tree": {"hash": ""}, "treeMapping": {"latestHash": "0xfallback"}}},
    }
    assert extract_anchor_hash(result) == "0xfallback"


def test_error_tag_yields_none():
    assert extract_anchor_hash({"tag": "error", "data": {"aquaTree": {"tree": {"hash": "0x1"}}}}) is None


def test_missing_paths_yield_none():
    assert extract_anchor_hash({"tag": "ok", "data": {}}) is None
    assert extract_anchor_hash({"tag": "ok"}) is None
    assert extract_anchor_hash(None) is None
    assert extract_anchor_hash({"tag": "ok", "data": {"aquaTree": {"tree": "not-a-map"}}}) is None


@patch("opshub_api.attestation.provider.httpx.AsyncClient")
def test_http_provider_posts_file_object_with_bearer(mock_client_cls):
    """Test that the HTTP provider submits the file object as JSON."""
    response = MagicMock()
    response.json.return_value = {"tag": "ok"}
    client = MagicMock()
    client.post = AsyncMock(return_value=response)
    mock_client_cls.return_value.__aenter__ = AsyncMock(return_value=client)
    mock_client_cls.return_value.__aexit__ = AsyncMock(return_value=False)

    provider = HttpAnchoringProvider("https://anchor.example/", token="secret", timeout=3.0)
    file_object = {"fileName": "check_in-1.json", "fileContent": "{}", "path": "/attestations/check_in"}
    result = asyncio.run(provider.create_genesis_revision(file_object))

    assert result == {"tag": "ok"}
    mock_client_cls.assert_called_once_with(timeout=3.0)
    args, kwargs = client.post.call_args
    assert args[0] == "https://anchor.example/revisions/genesis"
    assert kwargs["json"] == file_object
    assert kwargs["headers"]["Authorization"] == "Bearer secret"
    response.raise_for_status.assert_called_once()
