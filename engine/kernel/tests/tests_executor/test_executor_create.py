"""
Canvas Executor — CREATE Tests

Each create op instantiates a node with defaults for omitted fields, styles
and names it, then attaches it under the resolved parent (page root by default).
"""

from engine.kernel import events
from engine.kernel.executor import ActionExecutor
from engine.kernel.memory_host import MemoryDocument
from engine.kernel.types import BLACK, RGB, TEXT_AUTO_RESIZE

RED = RGB(1.0, 0.0, 0.0)


def only_child(doc):
    (node,) = doc.page.children
    return node


# ============================================================================
# Shapes
# ============================================================================


class TestCreateShapes:
    async def test_rectangle_defaults(self, doc, run):
        result = await run({"op": "create_rectangle"})

        node = only_child(doc)
        assert node.type == "RECTANGLE"
        assert (node.x, node.y, node.width, node.height) == (100, 100, 100, 100)
        assert node.fills == []
        assert result.succeeded == [0]
        assert doc.notifications[-1] == "Executed 1 actions on canvas!"

    async def test_red_rectangle(self, doc, run):
        await run({"op": "create_rectangle", "args": {"color": "#FF0000"}})
        assert only_child(doc).fills == [{"type": "SOLID", "color": RED}]

    async def test_rectangle_full_args(self, doc, run):
        await run({
            "op": "create_rectangle",
            "args": {"x": 40, "y": 60, "width": 320, "height": 180, "borderRadius": 12, "name": "Card"},
        })
        node = only_child(doc)
        assert (node.x, node.y, node.width, node.height) == (40, 60, 320, 180)
        assert node.corner_radius == 12
        assert node.name == "Card"

    async def test_zero_is_honored(self, doc, run):
        await run({"op": "create_rectangle", "args": {"x": 0, "y": 0}})
        node = only_child(doc)
        assert (node.x, node.y) == (0, 0)

    async def test_circle_uses_radius(self, doc, run):
        await run({"op": "create_circle", "args": {"radius": 30}})
        node = only_child(doc)
        assert node.type == "ELLIPSE"
        assert (node.width, node.height) == (60, 60)

    async def test_circle_default_radius(self, doc, run):
        await run({"op": "create_circle"})
        assert only_child(doc).width == 100

    async def test_ellipse_polygon_star(self, doc, run):
        await run(
            {"op": "create_ellipse", "args": {"width": 80, "height": 40}},
            {"op": "create_polygon"},
            {"op": "create_star", "args": {"color": "#00FF00"}},
        )
        ellipse, polygon, star = doc.page.children
        assert (ellipse.type, ellipse.width, ellipse.height) == ("ELLIPSE", 80, 40)
        assert polygon.type == "POLYGON"
        assert star.type == "STAR"
        assert star.fills[0]["color"] == RGB(0.0, 1.0, 0.0)

    async def test_line(self, doc, run):
        await run({"op": "create_line", "args": {"width": 250, "color": "#0000FF", "strokeWeight": 3}})
        node = only_child(doc)
        assert node.type == "LINE"
        assert (node.width, node.height) == (250, 0)
        assert node.strokes == [{"type": "SOLID", "color": RGB(0.0, 0.0, 1.0)}]
        assert node.stroke_weight == 3

    async def test_line_weight_without_color(self, doc, run):
        await run({"op": "create_line", "args": {"strokeWeight": 5}})
        node = only_child(doc)
        assert node.width == 100
        assert node.strokes == []
        assert node.stroke_weight == 5

    async def test_frame_defaults(self, doc, run):
        await run({"op": "create_frame", "args": {"name": "Screen"}})
        node = only_child(doc)
        assert node.type == "FRAME"
        assert (node.width, node.height) == (200, 200)
        assert node.name == "Screen"

    async def test_malformed_color_falls_back_to_black(self, doc, run):
        result = await run({"op": "create_rectangle", "args": {"color": "crimson"}})
        assert only_child(doc).fills[0]["color"] == BLACK
        assert result.succeeded == [0]
        (diagnostic,) = result.diagnostics_for(events.COLOR_FALLBACK)
        assert diagnostic.index == 0
        assert diagnostic.details["value"] == "crimson"

    async def test_auto_focus_created(self, doc, run):
        await run({"op": "create_star"}, auto_focus_created=True)
        node = only_child(doc)
        assert doc.get_selection() == [node]
        assert doc.viewport == [node]

    async def test_no_auto_focus_by_default(self, doc, run):
        await run({"op": "create_star"})
        assert doc.get_selection() == []


# ============================================================================
# Text
# ============================================================================


class TestCreateText:
    async def test_text_defaults(self, doc, run):
        await run({"op": "create_text"})
        node = only_child(doc)
        assert node.characters == "Hello"
        assert node.text_auto_resize == TEXT_AUTO_RESIZE
        assert ("Inter", "Regular") in doc.loaded_fonts

    async def test_text_args(self, doc, run):
        await run({
            "op": "create_text",
            "args": {"text": "Welcome back", "fontSize": 32, "color": "#FF0000", "name": "Heading"},
        })
        node = only_child(doc)
        assert node.characters == "Welcome back"
        assert node.font_size == 32
        assert node.fills[0]["color"] == RED
        assert node.name == "Heading"

    async def test_font_failure_still_creates_text(self):
        doc = MemoryDocument(fail_font_load=True)
        result = await ActionExecutor(doc).execute([{"op": "create_text", "args": {"text": "Hi"}}])

        node = only_child(doc)
        assert node.characters == "Hi"
        assert node.text_auto_resize == "NONE"
        assert result.succeeded == [0]
        assert result.codes() == [events.FONT_LOAD_FAILED]


# ============================================================================
# Parent attachment
# ============================================================================


class TestParentAttachment:
    async def test_parent_by_id(self, doc, run):
        card = doc.add("FRAME", "Card")
        await run({"op": "create_rectangle", "args": {"parentId": card.id}})
        assert [c.type for c in card.children] == ["RECTANGLE"]

    async def test_parent_by_name(self, doc, run):
        card = doc.add("FRAME", "Card")
        await run({"op": "create_text", "args": {"text": "Title", "parentId": "card"}})
        assert [c.characters for c in card.children] == ["Title"]
        assert doc.page.children == [card]

    async def test_parent_not_found(self, doc, run):
        result = await run({"op": "create_rectangle", "args": {"parentId": "Sidebar"}})
        assert only_child(doc).type == "RECTANGLE"
        assert result.codes() == [events.PARENT_NOT_FOUND]
        assert "Parent not found, created at root instead." in doc.notifications

    async def test_multiple_parents_get_a_copy_each(self, doc, run):
        first = doc.add("FRAME", "Card")
        second = doc.add("FRAME", "Card 2")
        result = await run({"op": "create_circle", "args": {"parentId": "Card", "name": "Badge"}})

        assert [c.name for c in first.children] == ["Badge"]
        assert [c.name for c in second.children] == ["Badge"]
        assert first.children[0].id != second.children[0].id
        assert result.codes() == [events.MULTIPLE_PARENTS]
        assert "Added element inside 2 parents named 'Card'." in doc.notifications

    async def test_non_container_parent_falls_back_to_root(self, doc, run):
        doc.add("RECTANGLE", "Card background")
        result = await run({"op": "create_text", "args": {"parentId": "Card background"}})
        assert [n.type for n in doc.page.children] == ["RECTANGLE", "TEXT"]
        assert result.codes() == [events.PARENT_NOT_CONTAINER]
