"""cli.navigation

Interactive walks over the two qTest trees.

- execution location (bulk-import): stop at any level below the project
- test location (recommend): walk until a suite that holds test runs
- design module (bulk-import): select a module, or navigate into its children
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from cli.ui import select_from_list
from pipeline.hierarchy import DesignTreeReader, ExecutionTreeReader
from pipeline.hierarchy.execution import PROJECT, TEST_SUITE
from pipeline.models import TreeNode
from pipeline.orchestrator import EmptyResultError


@dataclass(frozen=True)
class _Option:
    action: str
    node: TreeNode


def select_project(reader: ExecutionTreeReader) -> TreeNode:
    projects = reader.projects()
    if not projects:
        raise EmptyResultError("No projects found. Please check your qTest access.")
    project = select_from_list("📦 Select a Project:", projects, lambda p, i: f"{i}. {p.name}")
    print(f"\n✅ Selected: {project.name}")
    return project


def _child_label(node: TreeNode, index: int) -> str:
    prefix = "📁" if node.native_type == TEST_SUITE else "📂"
    suffix = f" - {node.leaf_count} test run(s)" if node.has_leaves else ""
    return f"{index}. {prefix} {node.name}{suffix}"


def navigate_to_execution_location(reader: ExecutionTreeReader, project: TreeNode) -> TreeNode:
    """Walk down from ``project``; any non-project node can be picked as the target."""
    current = project
    while True:
        children = reader.children(current)
        options: List[_Option] = []
        if current.native_type != PROJECT:
            options.append(_Option("current", current))
        options.extend(_Option("child", c) for c in children)
        if not options:
            return current

        path = reader.format_path(current)
        if current.native_type == PROJECT:
            title = f"📂 Select location in \"{current.name}\":"
        else:
            title = f"📋 Current: \"{path}\" - Select location:"

        def _label(opt: _Option, i: int) -> str:
            if opt.action == "current":
                return f"{i}. ✓ Use current location ({path})"
            return _child_label(opt.node, i)

        picked = select_from_list(title, options, _label)
        if picked.action == "current":
            return picked.node
        current = picked.node


def navigate_to_tests(reader: ExecutionTreeReader, project: TreeNode) -> TreeNode:
    """Walk down from ``project`` until the user picks a suite holding test runs."""
    current = project
    while True:
        children = reader.children(current)
        if not children:
            if current.has_leaves:
                return current
            raise EmptyResultError("No tests found in this location.")

        options: List[_Option] = []
        if current.native_type == TEST_SUITE and current.has_leaves:
            options.append(_Option("current", current))
        options.extend(_Option("child", c) for c in children)

        path = reader.format_path(current)
        if current.native_type == PROJECT:
            title = f"📂 Select location in \"{current.name}\":"
        else:
            title = f"📋 Select location in \"{path}\":"

        def _label(opt: _Option, i: int) -> str:
            if opt.action == "current":
                return f"{i}. ✓ Tests in current folder ({path}) - {opt.node.leaf_count} test run(s)"
            return _child_label(opt.node, i)

        picked = select_from_list(title, options, _label)
        if picked.action == "current":
            return picked.node
        current = picked.node


def navigate_and_select_module(reader: DesignTreeReader, project: TreeNode) -> Optional[TreeNode]:
    modules = reader.root_modules(project)
    if not modules:
        print("❌ No modules found in Test Design.")
        return None

    location = "Test Design (Root)"
    while True:
        options: List[_Option] = []
        for module in modules:
            options.append(_Option("select", module))
            if module.has_children:
                options.append(_Option("navigate", module))

        def _label(opt: _Option, i: int) -> str:
            m = opt.node
            if opt.action == "select":
                note = f" (includes {m.child_count} child module(s))" if m.has_children else ""
                return f"{i}. ✓ Select \"{m.name}\" and copy all{note}"
            return f"{i}. 📁 Navigate into \"{m.name}\" ({m.child_count} children)"

        picked = select_from_list(f"📂 {location} - Select module:", options, _label)
        if picked.action == "select":
            return picked.node

        location = f"Current: Test Design / {reader.format_path(picked.node)}"
        modules = reader.children(picked.node)
        if not modules:
            print("\n⚠️  No child modules found. Selecting current module.")
            return picked.node
