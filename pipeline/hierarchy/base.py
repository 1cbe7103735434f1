from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pipeline.models import TreeNode
from tools.qtest.api import QTestApiError, unwrap_items

from .ordering import sort_items

logger = logging.getLogger(__name__)


class HierarchyReader(ABC):
    """Shared surface of the design-tree and execution-tree readers."""

    def __init__(self, client) -> None:
        self._client = client

    @abstractmethod
    def children(self, node: TreeNode) -> List[TreeNode]:
        """Children of ``node`` in UI order."""

    def format_path(self, node: TreeNode) -> str:
        return node.format_path()

    def _lookup(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """One relationship lookup, sorted; an API error counts as no children."""
        try:
            resp = self._client.get(path, params)
        except QTestApiError as e:
            logger.debug("lookup %s %s failed: %s", path, params, e)
            return []
        return sort_items(unwrap_items(resp.data))
