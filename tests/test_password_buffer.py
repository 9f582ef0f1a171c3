"""Tests for password_buffer.py — Paul's walk, fires and grapheme safety.

Run with: python3 -m pytest tests/test_password_buffer.py -v
"""

import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))
from password_buffer import (
    HAZARD,
    HOME,
    MARKER,
    Buffer,
    MarkerStatus,
    core_cells,
    graphemes,
    strip_control_glyphs,
    validate_buffer,
)
from password_rules import marker_is_home

LIFTER_MAN = "\U0001F3CB\uFE0F\u200D\u2642\uFE0F"   # weightlifter, man


def walking(core: str, offset: int = 0) -> Buffer:
    return Buffer(cells=tuple(graphemes(core)), marker_offset=offset)


class TestGraphemes:

    def test_zwj_sequence_is_one_cluster(self):
        assert graphemes(f"a{LIFTER_MAN}b") == ["a", LIFTER_MAN, "b"]

    def test_glyphs_are_separate_clusters(self):
        assert graphemes(MARKER + HOME + HAZARD) == [MARKER, HOME, HAZARD]

    def test_strip_control_glyphs(self):
        assert strip_control_glyphs(f"{MARKER}a{HOME}b{HAZARD}") == "ab"


class TestUserEdits:

    def test_raw_mode_keeps_text_verbatim(self):
        b = Buffer().apply_user_edit(f"a{HAZARD}b")
        assert not b.activated
        assert b.rendered() == f"a{HAZARD}b"
        assert b.status is None

    def test_activation_wraps_raw_text(self):
        b = Buffer(raw=f"ab{MARKER}c").activate()
        assert b.cells == ("a", "b", "c")
        assert b.marker_offset == 0
        assert b.rendered() == f"{MARKER}abc{HOME}"

    def test_activation_is_idempotent(self):
        b = walking("abc", 2)
        assert b.activate() is b

    def test_edit_strips_glyphs_and_clamps_marker(self):
        b = walking("abcdef", 5).apply_user_edit(f"x{HAZARD}y{HOME}{MARKER}")
        assert b.core == "xy"
        assert b.marker_offset == 2
        assert b.rendered() == f"xy{MARKER}{HOME}"

    def test_edit_keeps_marker_when_core_grows(self):
        b = walking("abc", 1).apply_user_edit("abcdef")
        assert b.marker_offset == 1

    @pytest.mark.parametrize("typed,cells", [
        ("x\U0001F600\u200d", ("x", "\U0001F600")),     # dangling ZWJ
        ("\u0301abc", ("a", "b", "c")),                  # leading combining mark
        ("\U0001F3FBab", ("a", "b")),                    # leading skin tone
        ("a\n\u0301b", ("a", "\n", "b")),                # mark orphaned by a newline
        (f"e\u0301{LIFTER_MAN}", ("e\u0301", LIFTER_MAN)),
    ])
    def test_cells_never_fuse_with_glyphs(self, typed, cells):
        assert core_cells(typed) == cells
        b = Buffer().activate().apply_user_edit(typed)
        while b.status is MarkerStatus.WALKING:
            assert validate_buffer(b) == []
            b = b.advance_marker()
        assert validate_buffer(b) == []
        assert marker_is_home(b.rendered())

    def test_empty_edit_yields_empty_core(self):
        b = walking("abc", 2).apply_user_edit("")
        assert b.cells == ()
        assert b.marker_offset == 0
        assert b.status is MarkerStatus.ARRIVED


class TestMarkerAutomaton:

    def test_progress_law(self):
        """A clear core of length L takes exactly L ticks to arrive."""
        b = walking("abcdef", 0)
        for _ in range(6):
            assert b.status is MarkerStatus.WALKING
            b = b.advance_marker()
        assert b.status is MarkerStatus.ARRIVED
        assert b.rendered() == f"abcdef{MARKER}{HOME}"

    def test_reset_law(self):
        b = walking(f"ab{HAZARD}cd", 2)
        assert b.collision_ahead
        after = b.advance_marker()
        assert after.core == ""
        assert after.marker_offset == 0

    def test_arrived_is_absorbing(self):
        b = walking("abcd", 4)
        assert b.status is MarkerStatus.ARRIVED
        assert b.advance_marker() == b

    def test_step_is_one_grapheme(self):
        b = walking(f"{LIFTER_MAN}x", 0).advance_marker()
        assert b.marker_offset == 1
        assert b.rendered() == f"{LIFTER_MAN}{MARKER}x{HOME}"

    def test_inactive_buffer_never_moves(self):
        b = Buffer(raw="abc")
        assert b.advance_marker() == b
        assert b.spawn_hazard(random.Random(0)) == b

    def test_reset_keeps_prefix_and_home(self):
        b = Buffer(prefix="P", cells=(HAZARD, "a"), marker_offset=0).advance_marker()
        assert b.rendered() == f"P{MARKER}{HOME}"


class TestHazardSpawner:

    def test_slots_skip_cell_next_to_marker(self):
        assert walking("abcdef", 0).eligible_hazard_slots() == [1, 2, 3, 4, 5]
        assert walking("abcdef", 2).eligible_hazard_slots() == [3, 4, 5]

    def test_slots_avoid_existing_fires(self):
        assert walking(f"a{HAZARD}bc", 0).eligible_hazard_slots() == [3]

    @pytest.mark.parametrize("core,offset", [("", 0), ("a", 0), ("abc", 2), ("abc", 3)])
    def test_saturated_core_is_noop(self, core, offset):
        b = walking(core, offset)
        assert b.spawn_hazard(random.Random(1)) == b

    def test_spawn_inserts_one_fire(self):
        b = walking("ab", 0).spawn_hazard(random.Random(5))
        assert b.cells == ("a", HAZARD, "b")
        assert b.marker_offset == 0

    @pytest.mark.parametrize("seed", range(25))
    def test_adjacency_invariant_after_many_spawns(self, seed):
        rng = random.Random(seed)
        core = "abcdefghijklmnopqrst"
        b = walking(core, rng.randint(0, len(core)))
        for _ in range(40):
            b = b.spawn_hazard(rng)
            assert validate_buffer(b, marker_clearance=True) == []
        assert b.core.replace(HAZARD, "") == core


class TestValidateBuffer:

    def test_clean_buffer(self):
        assert validate_buffer(walking("abc", 1)) == []
        assert validate_buffer(Buffer(raw="anything")) == []

    def test_adjacent_fires_flagged(self):
        b = Buffer(cells=("a", HAZARD, HAZARD, "b"), marker_offset=0)
        assert any("adjacent hazards" in p for p in validate_buffer(b))

    def test_marker_clearance_is_opt_in(self):
        b = walking(f"{HAZARD}ab", 0)
        assert validate_buffer(b) == []
        assert any("adjacent to marker" in p for p in validate_buffer(b, marker_clearance=True))

    def test_extra_home_flagged(self):
        b = Buffer(prefix=HOME, cells=("a",), marker_offset=0)
        problems = validate_buffer(b)
        assert any("exactly one home" in p for p in problems)

    def test_offset_out_of_range(self):
        b = Buffer(cells=("a",), marker_offset=3)
        assert any("outside" in p for p in validate_buffer(b))
