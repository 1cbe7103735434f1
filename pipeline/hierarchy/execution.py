"""pipeline.hierarchy.execution

Reader for the Test Execution tree:

    project -> release | test-cycle -> test-cycle ... -> test-suite -> test-suite ...

qTest Cloud exposes top-level containers as releases; on-prem instances only
have root test cycles. Containers can hold suites and nested cycles at the
same time, so their children come from two lookups, suites listed first
(that is how the qTest UI shows them).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from pipeline.models import NodeKind, TreeNode
from tools.qtest.api import API_PREFIX, QTestApiError

from .base import HierarchyReader

logger = logging.getLogger(__name__)

PROJECT = "project"
RELEASE = "release"
TEST_CYCLE = "test-cycle"
TEST_SUITE = "test-suite"


class ExecutionTreeReader(HierarchyReader):
    def projects(self) -> List[TreeNode]:
        nodes: List[TreeNode] = []
        for project in self._client.get_projects():
            nodes.append(
                TreeNode(
                    kind=NodeKind.ROOT,
                    id=int(project["id"]),
                    name=str(project["name"]),
                    path=(str(project["name"]),),
                    native_type=PROJECT,
                    project_id=int(project["id"]),
                    has_children=True,
                )
            )
        return nodes

    def children(self, node: TreeNode) -> List[TreeNode]:
        if node.native_type == PROJECT:
            return self._project_children(node)
        if node.native_type in (RELEASE, TEST_CYCLE):
            return self._container_children(node)
        if node.native_type == TEST_SUITE:
            return self._suites(node, {"parentId": node.id, "parentType": TEST_SUITE})
        return []

    def test_runs(self, node: TreeNode) -> List[Dict[str, Any]]:
        """Runs held directly by a suite node."""
        if node.native_type != TEST_SUITE:
            return []
        return self._client.get_test_runs(node.project_id, node.id)

    # -------------------------
    # Per-level lookups
    # -------------------------

    def _project_children(self, node: TreeNode) -> List[TreeNode]:
        base = f"{API_PREFIX}/projects/{node.project_id}"

        containers = self._containers(node, self._lookup(f"{base}/releases"), RELEASE)
        if containers:
            print(f"   Found {len(containers)} release(s)")
        else:
            roots = self._lookup(f"{base}/test-cycles", {"parentId": 0, "parentType": "root"})
            containers = self._containers(node, roots, TEST_CYCLE)
            if containers:
                print(f"   Found {len(containers)} root test cycle(s)")

        suites = self._suites(node, None)
        return suites + containers

    def _container_children(self, node: TreeNode) -> List[TreeNode]:
        base = f"{API_PREFIX}/projects/{node.project_id}"
        params = {"parentId": node.id, "parentType": node.native_type}

        suites = self._suites(node, params)
        cycles = self._containers(node, self._lookup(f"{base}/test-cycles", params), TEST_CYCLE)
        return suites + cycles

    def _containers(self, parent: TreeNode, items: List[Dict[str, Any]], native_type: str) -> List[TreeNode]:
        return [
            parent.child(
                kind=NodeKind.CONTAINER,
                id=int(item["id"]),
                name=str(item["name"]),
                native_type=native_type,
                has_children=True,
            )
            for item in items
        ]

    def _suites(self, parent: TreeNode, params) -> List[TreeNode]:
        items = self._lookup(f"{API_PREFIX}/projects/{parent.project_id}/test-suites", params)
        nodes: List[TreeNode] = []
        for item in items:
            run_count = self._count_test_runs(parent.project_id, int(item["id"]))
            nodes.append(
                parent.child(
                    kind=NodeKind.LEAF_HOLDER,
                    id=int(item["id"]),
                    name=str(item["name"]),
                    native_type=TEST_SUITE,
                    has_children=run_count > 0,
                    leaf_count=run_count,
                )
            )
        return nodes

    def _count_test_runs(self, project_id: int, suite_id: int) -> int:
        try:
            return len(self._client.get_test_runs(project_id, suite_id))
        except QTestApiError as e:
            logger.debug("counting runs of suite %s failed: %s", suite_id, e)
            return 0
