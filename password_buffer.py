#!/usr/bin/env python3
"""Password Buffer — structured password text with Paul's walk embedded.

Before activation the buffer is just the raw text the player typed. Once
activated it is a record of prefix / core / suffix plus the marker position:

    prefix + core[:offset] + 🥚 + core[offset:] + suffix(…🏠)

The marker (Paul the egg) walks one grapheme per tick toward home. Fires are
dropped into the core ahead of him; stepping into one wipes the core.

All position arithmetic is done on grapheme clusters so that composite
pictographs (🏋️‍♂️, flags, skin tones) are never split.
"""

import logging
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

import regex

logger = logging.getLogger(__name__)

# ============================================================
# GLYPHS
# ============================================================

MARKER = "🥚"
HOME = "🏠"
HAZARD = "🔥"
CONTROL_GLYPHS = (MARKER, HOME, HAZARD)

_GRAPHEME_RE = regex.compile(r"\X")
# Code points that fuse with a glyph placed before / after their cell.
_LEADING_JOINERS_RE = regex.compile(r"^[\p{GCB=Extend}\p{GCB=SpacingMark}\u200d]+")
_TRAILING_JOINERS_RE = regex.compile(r"[\p{GCB=Prepend}\u200d]+$")


class MarkerStatus(Enum):
    WALKING = "walking"
    ARRIVED = "arrived"


def graphemes(text: str) -> list[str]:
    """Split text into extended grapheme clusters."""
    return _GRAPHEME_RE.findall(text)


def strip_control_glyphs(text: str) -> str:
    """Remove every marker, home and hazard glyph the player typed."""
    for glyph in CONTROL_GLYPHS:
        text = text.replace(glyph, "")
    return text


def core_cells(text: str) -> tuple:
    """Split typed text into core cells that stay whole next to any glyph.

    A cell that only joins its neighbour (a leading combining mark or skin
    tone, a dangling ZWJ) would fuse with Paul or a fire once one is placed
    beside it, so those code points are dropped.
    """
    cells = []
    for cell in graphemes(strip_control_glyphs(text)):
        cell = _TRAILING_JOINERS_RE.sub("", _LEADING_JOINERS_RE.sub("", cell))
        if cell:
            cells.append(cell)
    return tuple(cells)


# ============================================================
# DATA MODEL
# ============================================================

@dataclass(frozen=True)
class Buffer:
    raw: str = ""
    prefix: str = ""
    cells: tuple = ()
    suffix: str = HOME
    marker_offset: Optional[int] = None

    @property
    def activated(self) -> bool:
        return self.marker_offset is not None

    @property
    def core(self) -> str:
        return "".join(self.cells)

    @property
    def status(self) -> Optional[MarkerStatus]:
        if not self.activated:
            return None
        if self.marker_offset >= len(self.cells):
            return MarkerStatus.ARRIVED
        return MarkerStatus.WALKING

    @property
    def collision_ahead(self) -> bool:
        """The next marker tick would step into a fire."""
        return self.status is MarkerStatus.WALKING and self.cells[self.marker_offset] == HAZARD

    @property
    def hazard_count(self) -> int:
        return sum(1 for c in self.cells if c == HAZARD)

    def rendered(self) -> str:
        if not self.activated:
            return self.raw
        before = "".join(self.cells[:self.marker_offset])
        after = "".join(self.cells[self.marker_offset:])
        return self.prefix + before + MARKER + after + self.suffix

    # --------------------------------------------------------
    # Mutations (each returns a new Buffer)
    # --------------------------------------------------------

    def apply_user_edit(self, raw_input: str) -> "Buffer":
        if not self.activated:
            return replace(self, raw=raw_input)
        cells = core_cells(raw_input)
        return replace(
            self,
            raw=raw_input,
            cells=cells,
            marker_offset=min(self.marker_offset, len(cells)),
        )

    def activate(self, prefix: str = "") -> "Buffer":
        """Wrap the current raw text: Paul starts at the front, home at the end."""
        if self.activated:
            return self
        cells = core_cells(self.raw)
        return replace(
            self,
            prefix=strip_control_glyphs(prefix),
            cells=cells,
            suffix=HOME,
            marker_offset=0,
        )

    def reset(self) -> "Buffer":
        return replace(self, raw="", cells=(), marker_offset=0)

    def advance_marker(self) -> "Buffer":
        if self.status is not MarkerStatus.WALKING:
            return self
        if self.collision_ahead:
            return self.reset()
        return replace(self, marker_offset=self.marker_offset + 1)

    def eligible_hazard_slots(self) -> list[int]:
        """Insertion indices where a new fire keeps one clear cell around Paul and other fires."""
        if not self.activated:
            return []
        cells = self.cells
        slots = []
        for i in range(self.marker_offset + 1, len(cells)):
            if cells[i - 1] == HAZARD or cells[i] == HAZARD:
                continue
            slots.append(i)
        return slots

    def spawn_hazard(self, rng: Optional[random.Random] = None) -> "Buffer":
        slots = self.eligible_hazard_slots()
        if not slots:
            return self
        rng = rng or random
        i = rng.choice(slots)
        cells = self.cells[:i] + (HAZARD,) + self.cells[i:]
        return replace(self, cells=cells)


# ============================================================
# INVARIANTS
# ============================================================

def validate_buffer(buffer: Buffer, marker_clearance: bool = False) -> list[str]:
    """Check marker/home/hazard invariants. Returns list of violations.

    Paul may legitimately stand next to a fire between ticks (the next tick
    burns him), so the marker-clearance check is opt-in; it holds right after
    a spawn.
    """
    if not buffer.activated:
        return []

    problems = []
    if not 0 <= buffer.marker_offset <= len(buffer.cells):
        problems.append(
            f"marker offset {buffer.marker_offset} outside [0, {len(buffer.cells)}]"
        )
        return problems

    units = graphemes(buffer.rendered())
    markers = [i for i, g in enumerate(units) if g == MARKER]
    homes = [i for i, g in enumerate(units) if g == HOME]
    if len(markers) != 1:
        problems.append(f"expected exactly one marker, found {len(markers)}")
    if len(homes) != 1:
        problems.append(f"expected exactly one home, found {len(homes)}")
    if len(markers) == 1 and len(homes) == 1 and homes[0] < markers[0]:
        problems.append("home precedes marker")

    for i, g in enumerate(units):
        if g != HAZARD:
            continue
        if i + 1 < len(units) and units[i + 1] == HAZARD:
            problems.append(f"adjacent hazards at {i} and {i + 1}")
        neighbours = units[max(0, i - 1):i] + units[i + 1:i + 2]
        if marker_clearance and MARKER in neighbours:
            problems.append(f"hazard at {i} adjacent to marker")
    return problems
