"""pipeline.hierarchy.design

Reader for the Test Design module tree and its test cases.

Approval is detected by qTest's convention: a ``Status`` property whose value
name is ``Approved`` (field value ``202`` on stock instances). Test cases with
no properties at all are treated as not approved.
"""

from __future__ import annotations

from typing import Any, Dict, List

from pipeline.models import ApprovalState, MirrorSubtree, NodeKind, SourceLeaf, TreeNode
from tools.qtest.api import API_PREFIX

from .base import HierarchyReader
from .ordering import sort_items

MODULE = "module"
APPROVED_VALUE_NAME = "Approved"
APPROVED_VALUES = ("202", 202)


def approval_state(test_case: Dict[str, Any]) -> ApprovalState:
    props = test_case.get("properties")
    if not isinstance(props, list):
        return ApprovalState.OTHER
    for prop in props:
        if not isinstance(prop, dict) or prop.get("field_name") != "Status":
            continue
        if prop.get("field_value_name") == APPROVED_VALUE_NAME or prop.get("field_value") in APPROVED_VALUES:
            return ApprovalState.APPROVED
        return ApprovalState.OTHER
    return ApprovalState.OTHER


class DesignTreeReader(HierarchyReader):
    def root_modules(self, project: TreeNode) -> List[TreeNode]:
        modules = self._lookup(f"{API_PREFIX}/projects/{project.project_id}/modules")
        known_ids = {m.get("id") for m in modules}
        roots = [m for m in modules if not m.get("parent_id") or m.get("parent_id") not in known_ids]
        print(f"   Found {len(roots)} root module(s)")
        return [self._module_node(project, m, root=True) for m in sort_items(roots)]

    def children(self, node: TreeNode) -> List[TreeNode]:
        return [self._module_node(node, m) for m in self._child_modules(node.project_id, node.id)]

    def leaves(self, project_id: int, module_id: int, *, include_unapproved: bool = True) -> List[SourceLeaf]:
        cases = self._lookup(
            f"{API_PREFIX}/projects/{project_id}/test-cases",
            {"parentId": module_id, "parentType": MODULE},
        )
        leaves = [
            SourceLeaf(id=int(tc["id"]), name=str(tc["name"]), approval_state=approval_state(tc))
            for tc in cases
        ]
        if include_unapproved:
            return leaves
        return [leaf for leaf in leaves if leaf.approval_state is ApprovalState.APPROVED]

    def build_subtree(self, module: TreeNode, *, include_unapproved: bool = True) -> MirrorSubtree:
        """Snapshot ``module`` and its descendants with their test cases."""
        return self._build(module.project_id, module.id, module.name, include_unapproved)

    def _build(self, project_id: int, module_id: int, name: str, include_unapproved: bool) -> MirrorSubtree:
        leaves = self.leaves(project_id, module_id, include_unapproved=include_unapproved)
        children = tuple(
            self._build(project_id, int(m["id"]), str(m["name"]), include_unapproved)
            for m in self._child_modules(project_id, module_id)
        )
        return MirrorSubtree(container_id=module_id, container_name=name, leaves=tuple(leaves), children=children)

    def _child_modules(self, project_id: int, module_id: int) -> List[Dict[str, Any]]:
        return self._lookup(f"{API_PREFIX}/projects/{project_id}/modules", {"parentId": module_id})

    def _module_node(self, parent: TreeNode, module: Dict[str, Any], *, root: bool = False) -> TreeNode:
        child_count = len(self._child_modules(parent.project_id, int(module["id"])))
        name = str(module["name"])
        return TreeNode(
            kind=NodeKind.CONTAINER,
            id=int(module["id"]),
            name=name,
            path=(name,) if root else parent.path + (name,),
            native_type=MODULE,
            project_id=parent.project_id,
            has_children=child_count > 0,
            child_count=child_count,
        )
