"""Tests for intersection resolution (splitting crossing lines)."""

import pytest

from wireframe_builder.models.geometry import Point3D
from wireframe_builder.models.structure import Line, Structure
from wireframe_builder.resolvers import (
    find_intersections,
    fix_all_intersections,
    resolve_new_line,
)


# ── Fixtures ──────────────────────────────────────────────────────


@pytest.fixture
def cross() -> Structure:
    """Two diagonals of a 4x4 square; only N3-N4 is drawn."""
    s = Structure(name="Cross")
    s.add_node(0, 0, 0)  # N1
    s.add_node(4, 4, 0)  # N2
    s.add_node(0, 4, 0)  # N3
    s.add_node(4, 0, 0)  # N4
    s.add_line("N3", "N4")  # L1
    return s


@pytest.fixture
def ladder() -> Structure:
    """A long rail crossing two rungs, rail not yet drawn."""
    s = Structure(name="Ladder")
    s.add_node(0, 0, 0)  # N1
    s.add_node(6, 0, 0)  # N2
    s.add_node(2, 0, -1)  # N3
    s.add_node(2, 0, 1)  # N4
    s.add_node(4, 0, -1)  # N5
    s.add_node(4, 0, 1)  # N6
    s.add_line("N5", "N6")  # L1, the far rung
    s.add_line("N3", "N4")  # L2, the near rung
    return s


# ── resolve_new_line ──────────────────────────────────────────────


class TestResolveNewLine:
    def test_diagonals_split_at_center(self, cross):
        result = resolve_new_line(cross, ("N1", "N2"))
        s = result.structure

        assert [j.name for j in result.junctions] == ["N5"]
        assert s.nodes["N5"].position == Point3D(x=2, y=2, z=0)
        assert s.line_count() == 4
        assert sorted(s.lines) == ["L1a", "L1b", "L2a", "L2b"]
        assert result.removed_lines == ["L1"]
        assert result.line_name == "L2"
        assert result.split

    def test_every_piece_meets_at_junction(self, cross):
        s = resolve_new_line(cross, ("N1", "N2")).structure
        assert s.neighbors("N5") == {"N1", "N2", "N3", "N4"}
        assert s.find_line("N1", "N2") is None
        assert s.find_line("N3", "N4") is None

    def test_input_not_mutated(self, cross):
        before = cross.line_set_snapshot()
        resolve_new_line(cross, ("N1", "N2"))
        assert cross.line_set_snapshot() == before
        assert cross.node_count() == 4

    def test_no_crossing_adds_plain_line(self, cross):
        result = resolve_new_line(cross, ("N1", "N3"))
        assert result.junctions == []
        assert result.added_lines == ["L2"]
        assert result.structure.find_line("N1", "N3").name == "L2"
        assert result.describe() == "No intersections"

    def test_named_candidate_keeps_name(self, cross):
        result = resolve_new_line(cross, Line(name="Edge", node1="N1", node2="N3"))
        assert "Edge" in result.structure.lines

    def test_taken_name_is_replaced(self, cross):
        result = resolve_new_line(cross, Line(name="L1", node1="N1", node2="N3"))
        assert result.line_name == "L2"

    def test_two_crossings_ordered_along_line(self, ladder):
        result = resolve_new_line(ladder, ("N1", "N2"))
        s = result.structure

        junctions = [j.name for j in result.junctions]
        assert junctions == ["N7", "N8"]
        assert s.nodes["N7"].x == pytest.approx(2)
        assert s.nodes["N8"].x == pytest.approx(4)
        # rail chain N1 - N7 - N8 - N2
        assert s.find_line("N1", "N7") is not None
        assert s.find_line("N7", "N8") is not None
        assert s.find_line("N8", "N2") is not None
        assert s.line_count() == 3 + 2 + 2
        assert sorted(result.removed_lines) == ["L1", "L2"]

    def test_line_through_shared_endpoint_not_split(self, cross):
        # N3-N1 shares N1 with the new line N1-N4: no junction
        cross.add_line("N1", "N3")
        hits = find_intersections(cross, "N1", "N4")
        assert hits == []

    def test_reuses_freed_node_name(self, cross):
        cross.add_node(9, 9, 9)  # N5
        cross.remove_node("N5")
        result = resolve_new_line(cross, ("N1", "N2"))
        assert result.junctions[0].name == "N5"

    def test_unknown_node(self, cross):
        with pytest.raises(ValueError, match="does not exist"):
            resolve_new_line(cross, ("N1", "N9"))

    def test_self_loop(self, cross):
        with pytest.raises(ValueError, match="itself"):
            resolve_new_line(cross, ("N1", "N1"))

    def test_duplicate_pair(self, cross):
        with pytest.raises(ValueError, match="already connects"):
            resolve_new_line(cross, ("N4", "N3"))

    def test_failure_adds_line_unmodified(self, cross, monkeypatch, caplog):
        def broken(*args, **kwargs):
            raise ZeroDivisionError("degenerate")

        monkeypatch.setattr(
            "wireframe_builder.resolvers.intersections.find_intersections", broken
        )
        result = resolve_new_line(cross, ("N1", "N2"))
        assert result.junctions == []
        assert result.structure.find_line("N1", "N2").name == "L2"
        assert "L1" in result.structure.lines
        assert "adding line unmodified" in caplog.text

    def test_dangling_reference_is_input_error(self, cross):
        cross.nodes.pop("N4")  # L1 now points at a missing node
        with pytest.raises(ValueError, match="non-existent"):
            resolve_new_line(cross, ("N1", "N2"))


# ── Split lengths ─────────────────────────────────────────────────


@pytest.fixture
def near_miss() -> Structure:
    """A line and a candidate that pass 0.03 apart instead of meeting."""
    s = Structure(name="Near miss")
    s.add_node(0, 0, 0)  # N1
    s.add_node(4, 0, 0)  # N2
    s.add_node(1, -2, 0.03)  # N3
    s.add_node(3, 2, 0.03)  # N4
    s.add_line("N1", "N2")  # L1
    return s


class TestSplitLengths:
    def test_exact_crossing_pieces_sum_to_original(self, cross):
        before = cross.line_length("L1")
        s = resolve_new_line(cross, ("N1", "N2")).structure
        assert s.line_length("L1a") + s.line_length("L1b") == pytest.approx(before)

    def test_near_miss_pieces_sum_to_original(self, near_miss):
        crossed = near_miss.line_length("L1")
        candidate = near_miss.nodes["N3"].distance_to(near_miss.nodes["N4"])

        result = resolve_new_line(near_miss, ("N3", "N4"))
        s = result.structure

        assert [j.name for j in result.junctions] == ["N5"]
        # junction is rounded to 3 decimals and sits between the two lines
        assert s.line_length("L1a") + s.line_length("L1b") == pytest.approx(crossed, abs=1e-3)
        assert s.line_length("L2a") + s.line_length("L2b") == pytest.approx(candidate, abs=1e-3)


# ── fix_all_intersections ─────────────────────────────────────────


class TestFixAllIntersections:
    def test_fixes_existing_crossing(self, cross):
        cross.add_line("N1", "N2")  # L2, bypasses the resolver
        result = fix_all_intersections(cross)

        assert [j.name for j in result.junctions] == ["N5"]
        assert sorted(result.structure.lines) == ["L1a", "L1b", "L2a", "L2b"]
        assert sorted(result.removed_lines) == ["L1", "L2"]
        assert "N5" in result.describe()

    def test_idempotent(self, cross):
        cross.add_line("N1", "N2")
        once = fix_all_intersections(cross).structure
        twice = fix_all_intersections(once)
        assert twice.junctions == []
        assert twice.structure.line_set_snapshot() == once.line_set_snapshot()

    def test_three_lines_through_one_point(self):
        s = Structure(name="Star")
        s.add_node(0, 0, 0)  # N1
        s.add_node(4, 4, 0)  # N2
        s.add_node(0, 4, 0)  # N3
        s.add_node(4, 0, 0)  # N4
        s.add_node(2, 0, 0)  # N5
        s.add_node(2, 4, 0)  # N6
        s.add_line("N1", "N2")
        s.add_line("N3", "N4")
        s.add_line("N5", "N6")

        result = fix_all_intersections(s)
        fixed = result.structure

        assert [j.name for j in result.junctions] == ["N7"]
        assert fixed.neighbors("N7") == {"N1", "N2", "N3", "N4", "N5", "N6"}
        assert fixed.line_count() == 6
        assert sorted(result.removed_lines) == ["L1", "L2", "L3"]
        assert fix_all_intersections(fixed).junctions == []

    def test_dangling_reference_is_input_error(self, cross):
        cross.nodes.pop("N3")
        with pytest.raises(ValueError, match="non-existent"):
            fix_all_intersections(cross)

    def test_nothing_to_fix(self, ladder):
        result = fix_all_intersections(ladder)
        assert not result.split
        assert result.structure.line_set_snapshot() == ladder.line_set_snapshot()
