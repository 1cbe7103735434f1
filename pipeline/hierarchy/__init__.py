"""Readers over the two qTest hierarchies.

Both readers share :class:`~pipeline.hierarchy.base.HierarchyReader`
(``children``/``format_path``) so navigation and mirroring code does not care
which tree it walks.
"""

from __future__ import annotations

from .base import HierarchyReader
from .design import DesignTreeReader
from .execution import ExecutionTreeReader
from .ordering import sort_items

__all__ = ["HierarchyReader", "DesignTreeReader", "ExecutionTreeReader", "sort_items"]
