"""Tests for the in-memory document host."""

from __future__ import annotations

import pytest

from engine.kernel.host import Container, Fillable, Resizable, Strokable, TextLike
from engine.kernel.memory_host import MemoryDocument
from engine.kernel.types import RGB


class TestNodes:
    def test_ids_are_host_assigned_and_unique(self, doc):
        a = doc.create_node("RECTANGLE")
        b = doc.create_node("RECTANGLE")
        assert a.id != b.id

    def test_created_nodes_are_detached(self, doc):
        node = doc.create_node("ELLIPSE")
        assert node.parent is None
        assert doc.page.children == []

    def test_unknown_kind(self, doc):
        with pytest.raises(ValueError):
            doc.create_node("BLOB")

    def test_traits(self, doc):
        assert isinstance(doc.create_node("RECTANGLE"), Fillable)
        assert not isinstance(doc.create_node("LINE"), Fillable)
        assert isinstance(doc.create_node("LINE"), Strokable)
        assert isinstance(doc.create_node("TEXT"), TextLike)
        assert isinstance(doc.create_node("FRAME"), Container)
        assert not isinstance(doc.create_node("GROUP"), Resizable)

    def test_append_reparents(self, doc):
        frame = doc.add("FRAME", "Card")
        rect = doc.add("RECTANGLE", "Box")
        frame.append_child(rect)
        assert rect.parent is frame
        assert rect not in doc.page.children

    def test_remove_marks_subtree(self, doc):
        frame = doc.add("FRAME", "Card")
        rect = doc.add("RECTANGLE", "Box", parent=frame)
        frame.remove()
        assert frame.removed and rect.removed
        assert doc.find_all() == []

    def test_clone_copies_attributes_and_children(self, doc):
        frame = doc.add("FRAME", "Card", width=300)
        doc.add("TEXT", "Label", parent=frame, characters="Hi")
        twin = frame.clone()
        assert twin.id != frame.id
        assert twin.parent is None
        assert twin.width == 300
        assert [c.characters for c in twin.children] == ["Hi"]
        assert twin.children[0] is not frame.children[0]

    def test_fill(self, doc):
        rect = doc.add("RECTANGLE")
        rect.set_fill(RGB(1, 0, 0))
        assert rect.fills == [{"type": "SOLID", "color": RGB(1, 0, 0)}]


class TestDocument:
    def test_selection_prunes_removed(self, doc):
        a = doc.add("RECTANGLE")
        b = doc.add("RECTANGLE")
        doc.set_selection([a, b])
        a.remove()
        assert doc.get_selection() == [b]

    def test_group_and_ungroup(self, doc):
        a = doc.add("RECTANGLE", "A")
        b = doc.add("RECTANGLE", "B")
        c = doc.add("RECTANGLE", "C")
        group = doc.group([a, b], doc.page)
        assert doc.page.children == [group, c]
        assert group.children == [a, b]

        released = doc.ungroup(group)
        assert released == [a, b]
        assert doc.page.children == [a, b, c]
        assert group.removed

    def test_find_all_is_preorder(self, doc):
        frame = doc.add("FRAME", "F")
        inner = doc.add("RECTANGLE", "R", parent=frame)
        after = doc.add("ELLIPSE", "E")
        assert doc.find_all() == [frame, inner, after]

    async def test_font_load_failure(self):
        doc = MemoryDocument(fail_font_load=True)
        with pytest.raises(RuntimeError):
            await doc.load_font("Inter", "Regular")

    async def test_font_load_records(self, doc):
        await doc.load_font("Inter", "Regular")
        assert ("Inter", "Regular") in doc.loaded_fonts

    def test_plugin_data_defaults_to_empty(self, doc):
        assert doc.get_plugin_data("missing") == ""
        doc.set_plugin_data("k", "v")
        assert doc.get_plugin_data("k") == "v"

    def test_render_tree(self, doc):
        rect = doc.add("RECTANGLE", "Box", x=10, y=20)
        rect.set_fill(RGB(1, 0, 0))
        tree = doc.render_tree()
        assert tree.splitlines()[0] == "Page 1"
        assert "RECTANGLE 1:1 'Box' at (10, 20) 100x100 fill #FF0000" in tree
