"""pipeline.mirroring

Copy a Test Design module subtree into Test Execution as new cycles, suites
and test runs.

Per module, in this order:
  1. module has child modules -> create a test cycle named after it
  2. module has test cases    -> create a test suite named after it under the
                                 cycle from (1), or under the anchor when (1)
                                 was skipped or failed; one test run per case
  3. recurse into child modules under the cycle from (1), or the anchor

Failures never stop the traversal. A failed cycle means its contents land one
level up; a failed suite or run still yields one ``CreatedLeaf`` per test case,
so the result always has exactly ``subtree.leaf_total()`` entries, in pre-order.
There is no retry and no rollback of partially created trees.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from pipeline.error_log import ErrorLogger
from pipeline.models import CreatedLeaf, MirrorSubtree, NodeResult, SourceLeaf, TreeNode
from tools.qtest.api import API_PREFIX, QTestApiError
from tools.qtest.auth import AuthError

logger = logging.getLogger(__name__)

ROOT_PARENT_TYPES = ("project", "root")
TEST_CYCLE = "test-cycle"
TEST_SUITE = "test-suite"


def parent_params(parent_id: int, parent_type: str) -> dict:
    if parent_type in ROOT_PARENT_TYPES:
        return {"parentId": 0, "parentType": "root"}
    return {"parentId": parent_id, "parentType": parent_type}


class HierarchyMirror:
    def __init__(self, client, error_log: Optional[ErrorLogger] = None) -> None:
        self._client = client
        self._error_log = error_log

    def mirror_into(self, subtree: MirrorSubtree, anchor: TreeNode) -> List[CreatedLeaf]:
        return self.mirror(
            subtree,
            anchor.id,
            anchor.native_type,
            project_id=anchor.project_id,
            anchor_path=anchor.path,
        )

    def mirror(
        self,
        subtree: MirrorSubtree,
        anchor_id: int,
        anchor_kind: str,
        *,
        project_id: int,
        anchor_path: Tuple[str, ...] = (),
    ) -> List[CreatedLeaf]:
        results: List[CreatedLeaf] = []
        self._mirror_node(project_id, subtree, anchor_id, anchor_kind, tuple(anchor_path), results)
        return results

    def _mirror_node(
        self,
        project_id: int,
        node: MirrorSubtree,
        parent_id: int,
        parent_type: str,
        parent_path: Tuple[str, ...],
        results: List[CreatedLeaf],
    ) -> None:
        current_id, current_type, current_path = parent_id, parent_type, parent_path

        if node.children:
            print(f"\n   Creating test cycle: \"{node.container_name}\"...")
            cycle = self._create_node(project_id, "test-cycles", TEST_CYCLE, node.container_name, parent_id, parent_type)
            if cycle.created:
                current_id, current_type = cycle.destination_id, TEST_CYCLE
                current_path = parent_path + (node.container_name,)
                print(f"   ✅ Created test cycle: \"{node.container_name}\" (ID: {cycle.destination_id})")

        if node.leaves:
            print(f"\n   Creating test suite for module: \"{node.container_name}\"...")
            suite = self._create_node(
                project_id, "test-suites", TEST_SUITE, node.container_name, current_id, current_type
            )
            suite_path = current_path + (node.container_name,)
            if suite.created:
                print(f"   ✅ Created test suite: \"{node.container_name}\" (ID: {suite.destination_id})")
                for leaf in node.leaves:
                    results.append(self._create_run(project_id, leaf, suite.destination_id, node.container_name, suite_path))
            else:
                reason = f"test suite \"{node.container_name}\" was not created: {suite.error}"
                for leaf in node.leaves:
                    results.append(
                        CreatedLeaf(
                            name=leaf.name,
                            source_leaf_id=leaf.id,
                            container_name=node.container_name,
                            created=False,
                            failure_reason=reason,
                            container_path=suite_path,
                        )
                    )

        for child in node.children:
            self._mirror_node(project_id, child, current_id, current_type, current_path, results)

    def _create_node(
        self,
        project_id: int,
        collection: str,
        item_type: str,
        name: str,
        parent_id: int,
        parent_type: str,
    ) -> NodeResult:
        try:
            resp = self._client.post(
                f"{API_PREFIX}/projects/{project_id}/{collection}",
                {"name": name},
                parent_params(parent_id, parent_type),
            )
            return NodeResult(created=True, destination_id=int(resp.data["id"]))
        except (QTestApiError, AuthError, KeyError, TypeError, ValueError) as e:
            logger.debug("create %s %r under %s %s failed: %s", item_type, name, parent_type, parent_id, e)
            if self._error_log is not None:
                self._error_log.log_hierarchy_creation_error(item_type, name, e)
            return NodeResult(created=False, error=str(e))

    def _create_run(
        self,
        project_id: int,
        leaf: SourceLeaf,
        suite_id: int,
        suite_name: str,
        suite_path: Tuple[str, ...],
    ) -> CreatedLeaf:
        try:
            resp = self._client.post(
                f"{API_PREFIX}/projects/{project_id}/test-runs",
                {"name": leaf.name, "test_case": {"id": leaf.id}},
                {"parentId": suite_id, "parentType": TEST_SUITE},
            )
            data = resp.data or {}
            print(f"      ✅ {leaf.name}")
            return CreatedLeaf(
                name=leaf.name,
                source_leaf_id=leaf.id,
                container_name=suite_name,
                created=True,
                destination_id=int(data["id"]),
                container_path=suite_path,
                test_case_version_id=data.get("test_case_version_id"),
            )
        except (QTestApiError, AuthError, KeyError, TypeError, ValueError) as e:
            if self._error_log is not None:
                self._error_log.log_test_run_creation_error(leaf.name, suite_name, e)
            return CreatedLeaf(
                name=leaf.name,
                source_leaf_id=leaf.id,
                container_name=suite_name,
                created=False,
                failure_reason=str(e),
                container_path=suite_path,
            )
