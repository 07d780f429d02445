"""
Canvas Executor — STYLE and TRANSFORM Tests

Style ops act on an explicit target or, without one, on every selected node
that supports them. Transform ops require a target and keep the current value
of any omitted field.
"""

import pytest

from engine.kernel import events
from engine.kernel.types import RGB

BLUE = RGB(0.0, 0.0, 1.0)


@pytest.fixture
def shapes(doc):
    a = doc.add("RECTANGLE", "Left box", x=10, y=10)
    b = doc.add("ELLIPSE", "Right dot", x=200, y=10)
    line = doc.add("LINE", "Divider")
    return a, b, line


# ============================================================================
# set_fill / set_stroke / set_opacity
# ============================================================================


class TestSetFill:
    async def test_applies_to_selection(self, doc, run, shapes):
        a, b, _ = shapes
        doc.set_selection([a, b])
        result = await run({"op": "set_fill", "args": {"color": "#0000FF"}})
        assert a.fills[0]["color"] == BLUE
        assert b.fills[0]["color"] == BLUE
        assert result.succeeded == [0]
        assert result.codes() == []

    async def test_skips_selected_nodes_without_fill(self, doc, run, shapes):
        a, _, line = shapes
        doc.set_selection([a, line])
        result = await run({"op": "set_fill", "args": {"color": "#0000FF"}})
        assert a.fills[0]["color"] == BLUE
        assert result.succeeded == [0]
        (diagnostic,) = result.diagnostics_for(events.UNSUPPORTED_CAPABILITY)
        assert diagnostic.details["node_ids"] == [line.id]

    async def test_explicit_target_by_name(self, doc, run, shapes):
        a, b, _ = shapes
        doc.set_selection([a])
        await run({"op": "set_fill", "target": "right dot", "args": {"color": "#0000FF"}})
        assert b.fills[0]["color"] == BLUE
        assert a.fills == []

    async def test_explicit_target_without_fill_fails(self, run, shapes):
        _, _, line = shapes
        result = await run({"op": "set_fill", "target": line.id, "args": {"color": "#0000FF"}})
        assert result.failed == [0]
        assert result.codes() == [events.UNSUPPORTED_CAPABILITY]

    async def test_empty_selection_is_reported(self, run, shapes):
        result = await run({"op": "set_fill", "args": {"color": "#0000FF"}})
        assert result.succeeded == [0]
        assert result.codes() == [events.EMPTY_SELECTION]

    async def test_malformed_color_reported_once(self, doc, run, shapes):
        a, b, _ = shapes
        doc.set_selection([a, b])
        result = await run({"op": "set_fill", "args": {"color": "#12"}})
        assert a.fills[0]["color"] == RGB(0.0, 0.0, 0.0)
        assert result.codes() == [events.COLOR_FALLBACK]


class TestSetStroke:
    async def test_line_stroke_and_weight(self, doc, run, shapes):
        _, _, line = shapes
        doc.set_selection([line])
        await run({"op": "set_stroke", "args": {"color": "#0000FF", "strokeWeight": 4}})
        assert line.strokes[0]["color"] == BLUE
        assert line.stroke_weight == 4

    async def test_weight_kept_when_omitted(self, run, shapes):
        a, _, _ = shapes
        await run({"op": "set_stroke", "target": a.id, "args": {"color": "#0000FF"}})
        assert a.stroke_weight == 1


class TestSetOpacity:
    async def test_selection(self, doc, run, shapes):
        a, b, _ = shapes
        doc.set_selection([a, b])
        await run({"op": "set_opacity", "args": {"opacity": 0.5}})
        assert (a.opacity, b.opacity) == (0.5, 0.5)

    async def test_out_of_range_is_invalid(self, doc, run, shapes):
        a, _, _ = shapes
        doc.set_selection([a])
        result = await run({"op": "set_opacity", "args": {"opacity": 1.5}})
        assert result.failed == [0]
        assert result.codes() == [events.INVALID_ACTION]
        assert a.opacity == 1


# ============================================================================
# move / resize / rotate
# ============================================================================


class TestTransform:
    async def test_move_keeps_omitted_axis(self, run, shapes):
        a, _, _ = shapes
        await run({"op": "move", "target": a.id, "args": {"x": 400}})
        assert (a.x, a.y) == (400, 10)

    async def test_move_by_name(self, run, shapes):
        _, b, _ = shapes
        await run({"op": "move", "target": "Right dot", "args": {"x": 0, "y": 0}})
        assert (b.x, b.y) == (0, 0)

    async def test_move_without_target(self, run, shapes):
        result = await run({"op": "move", "args": {"x": 1}})
        assert result.failed == [0]
        assert result.codes() == [events.MISSING_TARGET]

    async def test_move_unknown_target(self, run, shapes):
        result = await run({"op": "move", "target": "9:999", "args": {"x": 1}})
        assert result.failed == [0]
        assert result.codes() == [events.TARGET_NOT_FOUND]

    async def test_resize_keeps_omitted_dimension(self, run, shapes):
        a, _, _ = shapes
        await run({"op": "resize", "target": a.id, "args": {"width": 300}})
        assert (a.width, a.height) == (300, 100)

    async def test_rotate(self, run, shapes):
        a, _, _ = shapes
        await run({"op": "rotate", "target": a.id, "args": {"rotation": 45}})
        assert a.rotation == 45

    async def test_rotate_without_value_keeps_rotation(self, run, shapes):
        a, _, _ = shapes
        a.rotation = 30
        result = await run({"op": "rotate", "target": a.id})
        assert a.rotation == 30
        assert result.succeeded == [0]

    async def test_resize_group_is_unsupported(self, doc, run, shapes):
        a, b, _ = shapes
        group = doc.group([a, b], doc.page)
        result = await run({"op": "resize", "target": group.id, "args": {"width": 10}})
        assert result.codes() == [events.UNSUPPORTED_CAPABILITY]
