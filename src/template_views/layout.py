"""
Layout path resolution.
"""
import os
from typing import Optional, Union


def resolve_layout_path(
    layouts_dir: str,
    layout: Union[str, bool, None],
    extname: str,
) -> Optional[str]:
    """
    Compute the absolute path of the layout wrapping a view.

    Args:
        layouts_dir: Directory holding layouts
        layout: Layout name; empty, None or False means no layout
        extname: Extension appended when ``layout`` has none

    Returns:
        Absolute layout path, or None when no layout applies
    """
    if not layout:
        return None

    layout = os.fspath(layout)
    if not os.path.splitext(layout)[1]:
        layout += extname

    return os.path.abspath(os.path.join(layouts_dir, layout))
