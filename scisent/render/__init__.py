"""
Page rendering, kept separate from sentence extraction.
"""

from scisent.render.pages import (
    PageRenderer,
    RenderConfig,
    RenderResult,
    RenderTracker,
    bitmap_size,
    page_zoom,
)

__all__ = [
    "PageRenderer",
    "RenderConfig",
    "RenderResult",
    "RenderTracker",
    "bitmap_size",
    "page_zoom",
]
