"""Tree engine: build, annotate, aggregate, and lay out directory trees.

- ``build``: traversal, filtering, ordering, and git status annotation
- ``sizes``: bottom-up directory size aggregation
- ``layout``: flattening into aligned ``RenderRecord`` rows
- ``rendering``: ANSI text for records
"""

from __future__ import annotations

from .build import TreeBuilder, build_tree, clear_git_status, fold_directory_status
from .layout import ColumnWidths, RenderRecord, flat_records, format_size, layout
from .rendering import render_lines, write_records
from .sizes import compute_sizes, node_contribution
from .types import BuildOptions, BuildResult, TreeNode

__all__ = [
    "BuildOptions",
    "BuildResult",
    "TreeNode",
    "TreeBuilder",
    "build_tree",
    "clear_git_status",
    "fold_directory_status",
    "compute_sizes",
    "node_contribution",
    "ColumnWidths",
    "RenderRecord",
    "flat_records",
    "format_size",
    "layout",
    "render_lines",
    "write_records",
]
