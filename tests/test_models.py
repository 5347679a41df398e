"""Tests for graph models, layout results and settings.

Tests cover:
- Editor aliases (camelCase keys, data.level, edge ids)
- Direction parsing
- Graph validation and the document codec
- Result etags and bounding boxes
- Layout settings
"""

import pytest

from mindmap_layout.config import settings
from mindmap_layout.config.settings import get_all_settings, get_setting, merge_options, set_setting
from mindmap_layout.core.errors import InvalidInputError, LayoutError
from mindmap_layout.models.graph import (
    AnchorSide,
    Graph,
    GraphEdge,
    GraphNode,
    LayoutDirection,
    NodePosition,
    NodeSize,
)
from mindmap_layout.models.layout_result import BoundingBox, LayoutResult


# =============================================================================
# Graph Models
# =============================================================================


class TestGraphNode:
    """Test node parsing."""

    def test_camel_case_aliases(self):
        """Test the editor's camelCase keys are accepted."""
        node = GraphNode.model_validate({
            "id": "n1",
            "position": {"x": 10, "y": 20},
            "measuredSize": {"width": 120, "height": 40},
            "anchorIn": "left",
            "anchorOut": "right",
        })
        assert node.measured_size == NodeSize(width=120, height=40)
        assert node.anchor_in == AnchorSide.LEFT
        assert node.anchor_out == AnchorSide.RIGHT

    def test_react_flow_aliases(self):
        """Test 'measured' and source/target position keys are accepted."""
        node = GraphNode.model_validate({
            "id": "n1",
            "measured": {"width": 90, "height": 30},
            "sourcePosition": "bottom",
            "targetPosition": "top",
        })
        assert node.measured_size.width == 90
        assert node.anchor_out == AnchorSide.BOTTOM
        assert node.anchor_in == AnchorSide.TOP

    def test_level_read_from_data(self):
        """Test the level stored in data is used when no level is given."""
        node = GraphNode.model_validate({"id": "n1", "data": {"level": 3}})
        assert node.level == 3

    def test_numeric_id_coerced(self):
        """Test numeric ids become strings."""
        node = GraphNode.model_validate({"id": 7})
        assert node.id == "7"

    def test_defaults(self):
        """Test a bare node gets an origin position and no anchors."""
        node = GraphNode(id="n")
        assert node.position.to_list() == [0.0, 0.0]
        assert node.anchor_in is None
        assert node.anchors_out == []


class TestGraphEdge:
    """Test edge parsing."""

    def test_default_id(self):
        """Test a missing id is derived from the endpoints."""
        edge = GraphEdge(source="a", target="b")
        assert edge.id == "ea-b"

    def test_handle_aliases(self):
        """Test sourceHandle/targetHandle keys are accepted."""
        edge = GraphEdge.model_validate(
            {"id": "e1", "source": "a", "target": "b", "sourceHandle": "left", "targetHandle": "right"}
        )
        assert edge.source_handle == "left"
        assert edge.target_handle == "right"


class TestNodePosition:
    """Test position helpers."""

    def test_to_list(self):
        """Test [x, y] conversion."""
        assert NodePosition(x=1.5, y=2.5).to_list() == [1.5, 2.5]


class TestAnchorSide:
    """Test anchor side helpers."""

    def test_opposite(self):
        """Test opposite sides."""
        assert AnchorSide.LEFT.opposite == AnchorSide.RIGHT
        assert AnchorSide.TOP.opposite == AnchorSide.BOTTOM


class TestLayoutDirection:
    """Test direction parsing."""

    @pytest.mark.parametrize("value,expected", [
        ("horizontal-tree", LayoutDirection.HORIZONTAL_TREE),
        ("RADIAL", LayoutDirection.RADIAL),
        (" rank-vertical ", LayoutDirection.RANK_VERTICAL),
        ("LR", LayoutDirection.RANK_HORIZONTAL),
        ("tb", LayoutDirection.RANK_VERTICAL),
        (LayoutDirection.RADIAL, LayoutDirection.RADIAL),
    ])
    def test_parse(self, value, expected):
        """Test canonical names and aliases."""
        assert LayoutDirection.parse(value) == expected

    @pytest.mark.parametrize("value", ["diagonal", "", None, 3])
    def test_parse_unknown(self, value):
        """Test unknown directions raise InvalidInputError."""
        with pytest.raises(InvalidInputError) as exc_info:
            LayoutDirection.parse(value)
        assert exc_info.value.field == "direction"
        assert exc_info.value.code == "INVALID_INPUT"


class TestGraph:
    """Test graph validation and the document codec."""

    def test_duplicate_ids_rejected(self):
        """Test duplicate node ids are an invalid call shape."""
        with pytest.raises(InvalidInputError, match="Duplicate node ids"):
            Graph.build([{"id": "a"}, {"id": "a"}], [])

    def test_none_rejected(self):
        """Test None containers raise InvalidInputError."""
        with pytest.raises(InvalidInputError):
            Graph.build(None, [])
        with pytest.raises(InvalidInputError):
            Graph.build([], None)

    def test_non_list_rejected(self):
        """Test mappings and strings are not node lists."""
        with pytest.raises(InvalidInputError):
            Graph.build({"id": "a"}, [])
        with pytest.raises(InvalidInputError):
            Graph.build([], "edges")

    def test_malformed_record_rejected(self):
        """Test an edge without a target is rejected."""
        with pytest.raises(InvalidInputError):
            Graph.build([{"id": "a"}], [{"source": "a"}])

    def test_errors_are_value_errors(self):
        """Test InvalidInputError is both a LayoutError and a ValueError."""
        assert issubclass(InvalidInputError, LayoutError)
        assert issubclass(InvalidInputError, ValueError)

    def test_build_copies_models(self):
        """Test model inputs are copied, not shared."""
        node = GraphNode(id="a", data={"label": "A"})
        graph = Graph.build([node], [])
        graph.nodes[0].data["label"] = "changed"
        assert node.data["label"] == "A"

    def test_document_codec(self):
        """Test the editor document loads and exports with camelCase keys."""
        document = {
            "nodes": [
                {"id": "r", "position": {"x": 0, "y": 0}, "data": {"label": "Root", "level": 0}},
                {"id": "a", "position": {"x": 300, "y": 0}, "measured": {"width": 100, "height": 40}},
            ],
            "edges": [{"id": "e1", "source": "r", "target": "a", "sourceHandle": "right"}],
        }
        graph = Graph.from_dict(document)
        exported = graph.to_dict()
        assert exported["nodes"][1]["measuredSize"] == {"width": 100.0, "height": 40.0}
        assert exported["edges"][0]["sourceHandle"] == "right"
        assert "targetHandle" not in exported["edges"][0]
        assert Graph.from_dict(exported).to_dict() == exported

    def test_from_dict_requires_mapping(self):
        """Test a non-dict document is rejected."""
        with pytest.raises(InvalidInputError):
            Graph.from_dict([])


# =============================================================================
# Results
# =============================================================================


class TestLayoutResult:
    """Test result envelopes."""

    def _result(self, x=0.0):
        return LayoutResult(
            algorithm="radial",
            nodes=[GraphNode(id="a", position={"x": x, "y": 0}, anchor_out="right")],
            edges=[],
        )

    def test_etag_is_deterministic(self):
        """Test identical content gives identical etags."""
        assert self._result().etag == self._result().etag
        assert len(self._result().etag) == 64

    def test_etag_changes_with_content(self):
        """Test a moved node changes the etag."""
        assert self._result(0.0).etag != self._result(1.0).etag

    def test_node_lookup(self):
        """Test node lookup by id."""
        result = self._result()
        assert result.node("a").anchor_out == AnchorSide.RIGHT
        with pytest.raises(KeyError):
            result.node("missing")

    def test_to_dict(self):
        """Test export carries layout metadata."""
        data = self._result().to_dict()
        assert data["algorithm"] == "radial"
        assert data["warnings"] == []
        assert data["nodes"][0]["anchorOut"] == "right"


class TestBoundingBox:
    """Test bounding box helpers."""

    def test_from_nodes(self):
        """Test the box encloses every node box."""
        nodes = [GraphNode(id="a", position={"x": -10, "y": 5}), GraphNode(id="b", position={"x": 100, "y": 50})]
        sizes = {"a": NodeSize(width=20, height=10), "b": NodeSize(width=50, height=30)}
        box = BoundingBox.from_nodes(nodes, sizes)
        assert (box.min_x, box.max_x, box.min_y, box.max_y) == (-10, 150, 5, 80)
        assert box.width == 160
        assert box.height == 75

    def test_empty_nodes(self):
        """Test an empty node list is rejected."""
        with pytest.raises(ValueError):
            BoundingBox.from_nodes([], {})


# =============================================================================
# Settings
# =============================================================================


class TestSettings:
    """Test layout settings."""

    @pytest.fixture
    def restore_settings(self):
        saved = get_all_settings()
        yield
        settings.LAYOUT_SETTINGS.update(saved)

    def test_defaults(self):
        """Test documented default values."""
        assert get_setting("padding") == 20
        assert get_setting("max_iterations") == 50
        assert get_setting("new_node_width") == 200
        assert get_setting("new_node_height") == 100

    def test_unknown_setting(self):
        """Test unknown names list the available settings."""
        with pytest.raises(KeyError, match="Available settings"):
            get_setting("nope")
        with pytest.raises(KeyError):
            set_setting("nope", 1)

    def test_set_setting(self, restore_settings):
        """Test overrides are visible through get_setting."""
        set_setting("padding", 5)
        assert get_setting("padding") == 5

    def test_get_all_settings_is_copy(self):
        """Test the returned dict does not alias the module state."""
        copy = get_all_settings()
        copy["padding"] = -1
        assert get_setting("padding") != -1

    def test_env_parsing(self, monkeypatch):
        """Test environment values are parsed and bad values ignored."""
        monkeypatch.setenv("MINDMAP_TEST_VALUE", "42")
        assert settings._env_number("MINDMAP_TEST_VALUE", 10) == 42
        monkeypatch.setenv("MINDMAP_TEST_VALUE", "abc")
        assert settings._env_number("MINDMAP_TEST_VALUE", 10) == 10
        monkeypatch.setenv("MINDMAP_TEST_VALUE", "-3")
        assert settings._env_number("MINDMAP_TEST_VALUE", 1.5) == 1.5
        monkeypatch.delenv("MINDMAP_TEST_VALUE")
        assert settings._env_number("MINDMAP_TEST_VALUE", 7) == 7

    def test_merge_options(self):
        """Test overrides win and known numeric values are coerced to float."""
        merged = merge_options(
            {"level_gap": 100, "tree_gap": 120},
            {"level_gap": "80", "padding": 5, "label": "kept"},
            shared=("padding",),
        )
        assert merged == {"level_gap": 80.0, "tree_gap": 120.0, "padding": 5.0, "label": "kept"}

    @pytest.mark.parametrize("value", ["x", None, True, float("inf"), [1]])
    def test_merge_options_rejects_bad_values(self, value):
        """Test a non-numeric value for a known option is invalid input."""
        with pytest.raises(InvalidInputError) as excinfo:
            merge_options({"level_gap": 100}, {"level_gap": value})
        assert excinfo.value.field == "options"

    def test_merge_options_requires_mapping(self):
        """Test options that are not a dict are invalid input."""
        with pytest.raises(InvalidInputError):
            merge_options({"level_gap": 100}, [("level_gap", 1)])
