#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_extensions.py
"""Unit tests for extensions, the extension manager and editor options."""

import logging

import pytest

from richdoc.exceptions import AttributeValidationError, DuplicateTypeError
from richdoc.extensions.base import Extension
from richdoc.extensions.manager import (
    ENTRY_POINT_GROUP,
    ExtensionManager,
    build_default_schema,
    default_extensions,
    discover_extensions,
)
from richdoc.extensions.nodes.basic import Paragraph
from richdoc.extensions.nodes.image import Image, image_component
from richdoc.model.state import Plugin, PluginKey
from richdoc.options.editor import EditorOptions
from richdoc.view.dom import Element
from richdoc.view.editor_view import EditorView

edit_count_key = PluginKey("edit-count")


def always(state, dispatch=None, view=None):
    return True


class EditCount(Extension):
    """Counts document-changing transactions."""

    name = "edit_count"
    default_settings = {"start": 0}

    def keys(self, schema):
        return {"Mod-u": always}

    def plugins(self, schema):
        start = self.settings["start"]
        return [
            Plugin(
                key=edit_count_key,
                init=lambda state: start,
                apply=lambda tr, value, old, new: value + 1 if tr.doc_changed else value,
            )
        ]

    def commands(self, schema):
        return {"noop": lambda: always}


class Nameless(Extension):
    pass


class FakeEntryPoint:
    def __init__(self, name, target):
        self.name = name
        self.dist = None
        self._target = target

    def load(self):
        if isinstance(self._target, Exception):
            raise self._target
        return self._target


@pytest.mark.unit
class TestExtension:
    """Tests for extension construction."""

    def test_requires_name(self):
        with pytest.raises(TypeError, match="must define a name"):
            Nameless()

    def test_settings_merged_over_defaults(self):
        assert EditCount().settings == {"start": 0}
        assert EditCount(start=5).settings == {"start": 5}

    def test_unknown_setting(self):
        with pytest.raises(TypeError, match="Unknown setting"):
            Image(EditorOptions(), size=3)

    def test_default_options(self):
        assert EditCount().options == EditorOptions()
        assert repr(EditCount()) == "<EditCount edit_count>"


@pytest.mark.unit
class TestExtensionManager:
    """Tests for assembling an editor from extensions."""

    def test_default_contributions(self, manager):
        assert manager.schema.frozen
        assert manager.schema.default_block_type.name == "paragraph"
        assert {"paragraph", "heading", "toggle_fold", "em", "strong"} <= set(manager.commands)
        assert manager.node_views == {"image": image_component}
        assert "Shift-Ctrl-2" in manager.keymap
        assert "Mod-b" in manager.keymap
        assert len(manager.input_rules) >= 5

    def test_duplicate_extension(self):
        with pytest.raises(DuplicateTypeError):
            ExtensionManager([*default_extensions(), Paragraph()])

    def test_unknown_command(self, manager):
        with pytest.raises(KeyError, match="Unknown command"):
            manager.command("underline")

    def test_custom_extension(self, bus):
        manager = ExtensionManager([*default_extensions(), EditCount(start=1)])
        assert "Ctrl-u" in manager.keymap
        assert manager.command("noop") is always

        state = manager.create_state(manager.parse("text\n"))
        assert edit_count_key.get_state(state) == 1
        state = state.apply(state.tr.insert_text("more ", 1))
        assert edit_count_key.get_state(state) == 2

    def test_image_component_setting(self):
        def custom(props):
            return Element("figure")

        extensions = [
            Image(component=custom) if isinstance(extension, Image) else extension
            for extension in default_extensions()
        ]
        assert ExtensionManager(extensions).node_views["image"] is custom

    def test_create_view_defaults(self, manager, bus):
        view = manager.create_view(bus=bus)
        try:
            assert isinstance(view, EditorView)
            assert view.keymap is manager.keymap
            assert view.components == manager.node_views
            assert view.state.doc.first_child.type.name == "paragraph"
        finally:
            view.destroy()


@pytest.mark.unit
class TestDiscovery:
    """Tests for entry-point discovery."""

    def test_loads_extension_classes(self, monkeypatch, caplog):
        requested = []

        def entry_points(group):
            requested.append(group)
            return [
                FakeEntryPoint("edit_count", EditCount),
                FakeEntryPoint("broken", ImportError("no module")),
                FakeEntryPoint("wrong", object),
            ]

        monkeypatch.setattr("importlib.metadata.entry_points", entry_points)
        with caplog.at_level(logging.WARNING, logger="richdoc.extensions.manager"):
            found = discover_extensions()
        assert requested == [ENTRY_POINT_GROUP]
        assert [type(extension) for extension in found] == [EditCount]
        assert "Failed to load extension 'broken'" in caplog.text
        assert "did not return an Extension subclass" in caplog.text

    def test_default_with_discovery(self, monkeypatch):
        monkeypatch.setattr("importlib.metadata.entry_points", lambda group: [FakeEntryPoint("x", EditCount)])
        manager = ExtensionManager.default(discover=True)
        assert manager.extensions[-1].name == "edit_count"
        assert "noop" in manager.commands


@pytest.mark.unit
class TestEditorOptions:
    """Tests for editor option validation and schema configuration."""

    def test_custom_heading_levels(self):
        schema = build_default_schema(EditorOptions(heading_levels=(1, 2)))
        assert schema.node("heading", {"level": 2}).attrs["level"] == 2
        with pytest.raises(AttributeValidationError):
            schema.node("heading", {"level": 3})

    def test_list_levels_become_tuple(self):
        assert EditorOptions(heading_levels=[1, 2]).heading_levels == (1, 2)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"heading_levels": ()},
            {"heading_levels": (0, 1)},
            {"heading_levels": (7,)},
            {"slug_separator": ""},
            {"slug_max_length": 0},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            EditorOptions(**kwargs)

    def test_create_updated(self):
        options = EditorOptions().create_updated(editable=False)
        assert options.editable is False
        assert options.heading_levels == EditorOptions().heading_levels

    def test_from_mapping(self):
        options = EditorOptions.from_mapping({"slug-separator": "_", "heading_levels": [1]})
        assert options.slug_separator == "_"
        assert options.heading_levels == (1,)
        with pytest.raises(ValueError, match="Unknown EditorOptions option"):
            EditorOptions.from_mapping({"colour": "red"})
