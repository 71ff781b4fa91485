"""Tests for the Node / Line / Structure model and name allocation."""

import json

import pytest
from pydantic import ValidationError

from wireframe_builder.models import NameAllocator, Point3D
from wireframe_builder.models.structure import Line, Node, Structure


# ── Fixtures ──────────────────────────────────────────────────────


@pytest.fixture
def square() -> Structure:
    """4 floor nodes joined into a closed square."""
    s = Structure(name="Square")
    s.add_node(0, 0, 0)
    s.add_node(4, 0, 0)
    s.add_node(4, 0, 3)
    s.add_node(0, 0, 3)
    s.add_line("N1", "N2")
    s.add_line("N2", "N3")
    s.add_line("N3", "N4")
    s.add_line("N4", "N1")
    return s


# ── NameAllocator ─────────────────────────────────────────────────


class TestNameAllocator:
    def test_starts_at_one(self):
        alloc = NameAllocator("N")
        assert alloc.allocate() == "N1"
        assert alloc.allocate() == "N2"

    def test_claims_existing_names(self):
        alloc = NameAllocator("N", ["N1", "N2", "N4"])
        assert alloc.allocate() == "N3"
        assert alloc.allocate() == "N5"

    def test_released_name_is_reused(self):
        alloc = NameAllocator("L", ["L1", "L2", "L3"])
        alloc.release("L2")
        assert alloc.peek() == "L2"
        assert alloc.allocate() == "L2"
        assert alloc.allocate() == "L4"

    def test_peek_does_not_claim(self):
        alloc = NameAllocator("N")
        assert alloc.peek() == "N1"
        assert alloc.peek() == "N1"
        assert not alloc.is_used("N1")

    def test_ignores_foreign_names(self):
        alloc = NameAllocator("N", ["Apex", "N01", "N0", "L1"])
        assert alloc.allocate() == "N1"
        assert not alloc.is_used("Apex")


# ── Point3D ───────────────────────────────────────────────────────


class TestPoint3D:
    def test_of_tuple(self):
        assert Point3D.of((1, 2, 3)) == Point3D(x=1, y=2, z=3)

    def test_of_node(self):
        node = Node(name="N1", x=1, y=2, z=3)
        assert Point3D.of(node).as_tuple() == (1, 2, 3)

    def test_distance(self):
        assert Point3D(x=0, y=0, z=0).distance_to(Point3D(x=3, y=4, z=0)) == pytest.approx(5.0)

    def test_horizontal_distance_ignores_y(self):
        a = Point3D(x=0, y=0, z=0)
        b = Point3D(x=3, y=100, z=4)
        assert a.horizontal_distance_to(b) == pytest.approx(5.0)

    def test_rounded(self):
        assert Point3D(x=1.23456, y=0, z=2.0004).rounded(3).as_tuple() == (1.235, 0, 2.0)


# ── Node / Line ───────────────────────────────────────────────────


class TestNodeAndLine:
    def test_node_requires_name(self):
        with pytest.raises(ValidationError):
            Node(name="", x=0, y=0, z=0)

    def test_line_rejects_self_loop(self):
        with pytest.raises(ValidationError, match="itself"):
            Line(name="L1", node1="N1", node2="N1")

    def test_line_is_undirected(self):
        line = Line(name="L1", node1="N2", node2="N1")
        assert line.connects("N1", "N2")
        assert line.pair_key() == "N1-N2"
        assert line.other_end("N2") == "N1"

    def test_other_end_of_foreign_node(self):
        line = Line(name="L1", node1="N1", node2="N2")
        with pytest.raises(ValueError, match="not an endpoint"):
            line.other_end("N3")


# ── Structure editing ─────────────────────────────────────────────


class TestStructureEditing:
    def test_auto_names(self, square):
        assert list(square.nodes) == ["N1", "N2", "N3", "N4"]
        assert list(square.lines) == ["L1", "L2", "L3", "L4"]

    def test_taken_node_name_is_replaced(self, square):
        node = square.add_node(9, 0, 9, name="N2")
        assert node.name == "N5"
        assert square.nodes["N2"].x == 4

    def test_custom_names_kept(self):
        s = Structure()
        s.add_node(0, 0, 0, name="Base")
        s.add_node(0, 3, 0, name="Top")
        line = s.add_line("Base", "Top", name="Post")
        assert line.name == "Post"
        assert s.next_line_name() == "L1"

    def test_add_line_unknown_node(self, square):
        with pytest.raises(ValueError, match="does not exist"):
            square.add_line("N1", "N99")

    def test_add_line_self_loop(self, square):
        with pytest.raises(ValueError, match="itself"):
            square.add_line("N1", "N1")

    def test_add_line_duplicate_pair(self, square):
        with pytest.raises(ValueError, match="already connects"):
            square.add_line("N2", "N1")

    def test_remove_node_cascades(self, square):
        removed = square.remove_node("N1")
        assert sorted(removed) == ["L1", "L4"]
        assert "N1" not in square.nodes
        assert square.line_count() == 2
        assert all(not l.touches("N1") for l in square.lines.values())

    def test_removed_names_are_reused(self, square):
        square.remove_node("N2")
        assert square.add_node(5, 0, 5).name == "N2"
        assert square.next_line_name() == "L1"

    def test_remove_missing_line(self, square):
        with pytest.raises(ValueError, match="Available"):
            square.remove_line("L42")

    def test_move_node_lines_follow(self, square):
        square.move_node("N2", x=8)
        assert square.line_length("L1") == pytest.approx(8.0)
        assert square.nodes["N2"].z == 0

    def test_neighbors(self, square):
        assert square.neighbors("N1") == {"N2", "N4"}

    def test_line_set_snapshot_is_order_independent(self, square):
        other = Structure()
        for node in square.nodes.values():
            other.add_node(node.x, node.y, node.z, name=node.name)
        other.add_line("N1", "N4")
        other.add_line("N4", "N3")
        other.add_line("N3", "N2")
        other.add_line("N2", "N1")
        assert other.line_set_snapshot() == square.line_set_snapshot()

    def test_summary(self, square):
        text = square.summary()
        assert "Nodes: 4" in text
        assert "L1[N1, N2] - 4.000m" in text


# ── Serialization ─────────────────────────────────────────────────


class TestStructureSerialization:
    def test_dump_uses_lists(self, square):
        data = square.to_data()
        assert isinstance(data["nodes"], list)
        assert data["lines"][0] == {"name": "L1", "node1": "N1", "node2": "N2"}

    def test_save_and_load(self, square, tmp_path):
        path = square.save(tmp_path / "out" / "square.json")
        loaded = Structure.load(path)
        assert loaded.line_set_snapshot() == square.line_set_snapshot()
        assert loaded.next_node_name() == "N5"
        assert loaded.next_line_name() == "L5"

    def test_load_from_list_shape(self):
        s = Structure.model_validate({
            "nodes": [{"name": "A", "x": 0, "y": 0, "z": 0}, {"name": "B", "x": 1, "y": 0, "z": 0}],
            "lines": [{"name": "L1", "node1": "A", "node2": "B"}],
        })
        assert s.find_line("B", "A").name == "L1"

    def test_dangling_reference_rejected(self):
        with pytest.raises(ValidationError, match="non-existent"):
            Structure.model_validate({
                "nodes": [{"name": "A", "x": 0, "y": 0, "z": 0}],
                "lines": [{"name": "L1", "node1": "A", "node2": "B"}],
            })

    def test_duplicate_node_names_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate node"):
            Structure.model_validate({
                "nodes": [
                    {"name": "A", "x": 0, "y": 0, "z": 0},
                    {"name": "A", "x": 1, "y": 0, "z": 0},
                ],
            })

    def test_json_is_plain(self, square):
        data = json.loads(square.model_dump_json())
        assert [n["name"] for n in data["nodes"]] == ["N1", "N2", "N3", "N4"]
