"""Anchoring provider clients.

A provider accepts a named file object ``{fileName, fileContent, path}`` and
returns a result tagged ``ok`` or ``error``. On ``ok`` the anchor hash lives
at ``data.aquaTree.tree.hash``, or failing that at
``data.aquaTree.treeMapping.latestHash``.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

import httpx

logger = logging.getLogger(__name__)


class AnchoringProvider(ABC):
    """External service that anchors content-addressed documents."""

    @abstractmethod
    async def create_genesis_revision(self, file_object: Mapping[str, str]) -> Mapping[str, Any]:
        """Submit a file object and return the provider's raw result."""


class HttpAnchoringProvider(AnchoringProvider):
    """Anchoring provider reached over HTTP."""

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    async def create_genesis_revision(self, file_object: Mapping[str, str]) -> Mapping[str, Any]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.base_url}/revisions/genesis",
                json=dict(file_object),
                headers=headers,
            )
            response.raise_for_status()
            return response.json()


def extract_anchor_hash(result: Optional[Mapping[str, Any]]) -> Optional[str]:
    """
    Pull the anchor hash out of a provider result.

    Priority order:
    1. ``data.aquaTree.tree.hash``
    2. ``data.aquaTree.treeMapping.latestHash``
    3. None
    """
    if not isinstance(result, Mapping) or result.get("tag") != "ok":
        return None

    data = result.get("data")
    tree_root = data.get("aquaTree") if isinstance(data, Mapping) else None
    if not isinstance(tree_root, Mapping):
        return None

    for section, key in (("tree", "hash"), ("treeMapping", "latestHash")):
        node = tree_root.get(section)
        if isinstance(node, Mapping):
            value = node.get(key)
            if isinstance(value, str) and value:
                return value
    return None
