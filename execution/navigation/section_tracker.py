"""
execution/navigation/section_tracker.py

Scrollspy for a lesson page: maps the section currently inside the focus
band of the viewport to the highlighted table-of-contents entry.

The focus band is the viewport with its bottom BOTTOM_MARGIN_RATIO cut off
(a rootMargin of "0px 0px -70% 0px"). A section becomes active as
soon as any part of it enters the band. When several sections intersect in
one observation batch, the earliest in document order wins.

The tracker is advisory UI state only. Nothing in gating or completion
reads it. After dispose() every observation is ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

BOTTOM_MARGIN_RATIO: float = 0.70


@dataclass(frozen=True)
class TocSection:
    id: str
    label: str
    order: int


@dataclass(frozen=True)
class SectionBox:
    """Vertical extent of a rendered section in document coordinates."""

    id: str
    top: float
    bottom: float


def layout_sections(sections: list[TocSection], heights: dict[str, float]) -> list[SectionBox]:
    """Stack sections top to bottom in document order using their rendered heights.

    Sections missing from *heights* get zero height and still occupy a
    position, so the layout always lists every section.
    """
    boxes: list[SectionBox] = []
    cursor = 0.0
    for section in sorted(sections, key=lambda s: s.order):
        height = max(0.0, float(heights.get(section.id, 0.0)))
        boxes.append(SectionBox(id=section.id, top=cursor, bottom=cursor + height))
        cursor += height
    return boxes


class SectionVisibilityTracker:
    """Owned scrollspy resource: construct on mount, dispose on unmount."""

    def __init__(
        self,
        sections: list[TocSection],
        bottom_margin_ratio: float = BOTTOM_MARGIN_RATIO,
    ):
        if not sections:
            raise ValueError("SectionVisibilityTracker: 'sections' must be a non-empty list")
        if not (0.0 <= bottom_margin_ratio < 1.0):
            raise ValueError(
                f"SectionVisibilityTracker: 'bottom_margin_ratio' must be in [0, 1), "
                f"got {bottom_margin_ratio}"
            )
        self._sections = sorted(sections, key=lambda s: s.order)
        self._order = {s.id: s.order for s in self._sections}
        self._ratio = bottom_margin_ratio
        self._layout: list[SectionBox] = []
        self._active_id = self._sections[0].id
        self._observing = True

    @property
    def active_section_id(self) -> str:
        return self._active_id

    @property
    def observing(self) -> bool:
        return self._observing

    def set_layout(self, boxes: list[SectionBox]) -> None:
        """Replace the remembered layout used by observe_scroll()."""
        if self._observing:
            self._layout = list(boxes)

    def observe(
        self,
        entries: list[SectionBox],
        viewport_height: float,
        scroll_top: float = 0.0,
    ) -> str:
        """Process one observation batch and return the active section id.

        Entries for unknown section ids are ignored. If nothing intersects the
        focus band the previous active id is kept.
        """
        if not self._observing:
            return self._active_id

        band_top = scroll_top
        band_bottom = scroll_top + viewport_height * (1.0 - self._ratio)

        known = [e for e in entries if e.id in self._order]
        for entry in sorted(known, key=lambda e: self._order[e.id]):
            if _intersects(entry, band_top, band_bottom):
                if entry.id != self._active_id:
                    logger.debug("Active section %s -> %s", self._active_id, entry.id)
                self._active_id = entry.id
                break
        return self._active_id

    def observe_scroll(self, scroll_top: float, viewport_height: float) -> str:
        """Observe the remembered layout at a given scroll offset."""
        return self.observe(self._layout, viewport_height, scroll_top)

    def dispose(self) -> None:
        """Stop observing. Later observe calls leave the active id untouched."""
        self._observing = False
        self._layout = []


def _intersects(box: SectionBox, band_top: float, band_bottom: float) -> bool:
    """True when any part of *box* lies inside [band_top, band_bottom)."""
    if band_bottom <= band_top:
        return False
    return box.top < band_bottom and box.bottom > band_top
