#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_commands.py
"""Unit tests for editing commands, key bindings and input rules."""

import logging

import pytest

from richdoc.commands import (
    Keymap,
    backspace_to_paragraph,
    chain_commands,
    key_name_from_event,
    normalize_key_name,
    run_input_rules,
    set_block_type,
    split_block,
    split_heading,
    toggle_fold,
    toggle_mark,
)
from richdoc.model.selection import TextSelection
from richdoc.view.dom import Event


class Recorder:
    """Collects dispatched transactions and applies them."""

    def __init__(self, state):
        self.state = state
        self.transactions = []

    def __call__(self, tr):
        self.transactions.append(tr)
        self.state = self.state.apply(tr)


def run(command, state):
    recorder = Recorder(state)
    applied = command(state, recorder)
    return applied, recorder.state


@pytest.mark.unit
class TestBlockTypeCommands:
    """Tests for converting and toggling textblock types."""

    def test_toggle_heading_round_trip(self, manager, build, state_at):
        state = state_at(build.doc(build.p("Hello")), 3)
        toggle = manager.command("heading", 2)

        applied, state = run(toggle, state)
        assert applied
        assert state.doc.first_child.type.name == "heading"
        assert dict(state.doc.first_child.attrs) == {"level": 2, "collapsed": None}

        applied, state = run(toggle, state)
        assert applied
        assert state.doc.first_child.type.name == "paragraph"
        assert state.doc.first_child.text_content == "Hello"

    def test_toggle_changes_level(self, manager, build, state_at):
        state = state_at(build.doc(build.h(1, "Title")), 2)
        _, state = run(manager.command("heading", 3), state)
        assert state.doc.first_child.attrs["level"] == 3

    def test_dry_run_does_not_dispatch(self, manager, build, state_at):
        state = state_at(build.doc(build.p("Hello")), 3)
        assert manager.command("heading", 1)(state)
        assert state.doc.first_child.type.name == "paragraph"

    def test_mixed_selection_refused(self, manager, build, state_at, caplog):
        # paragraph: 0..3, heading: 3..6
        state = state_at(build.doc(build.p("a"), build.h(1, "b")), 1, 5)
        recorder = Recorder(state)
        with caplog.at_level(logging.WARNING):
            assert not manager.command("heading", 1)(state, recorder)
        assert recorder.transactions == []
        assert "several block types" in caplog.text

    def test_converts_every_selected_block(self, manager, build, state_at):
        # paragraphs: 0..3 and 3..6
        state = state_at(build.doc(build.p("a"), build.p("b")), 1, 5)
        _, state = run(manager.command("heading", 2), state)
        assert [child.type.name for child in state.doc.content] == ["heading", "heading"]

    def test_set_block_type_without_change(self, build, state_at):
        state = state_at(build.doc(build.h(2, "Title")), 2)
        assert not set_block_type("heading", {"level": 2})(state)

    def test_set_block_type_keeps_other_attrs(self, build, state_at):
        state = state_at(build.doc(build.h(2, "Title", collapsed=True)), 2)
        _, state = run(set_block_type("heading", {"level": 3}), state)
        assert dict(state.doc.first_child.attrs) == {"level": 3, "collapsed": True}

    def test_paragraph_command(self, manager, build, state_at):
        state = state_at(build.doc(build.h(1, "Title")), 2)
        _, state = run(manager.command("paragraph"), state)
        assert state.doc.first_child.type.name == "paragraph"

    def test_unknown_command(self, manager):
        with pytest.raises(KeyError):
            manager.command("table")


@pytest.mark.unit
class TestToggleFold:
    """Tests for collapsing and expanding headings."""

    @pytest.fixture
    def section(self, build):
        # heading: 0..3 (content end 2), paragraphs: 3..6 and 6..9
        return build.doc(build.h(1, "A"), build.p("x"), build.p("y"))

    def test_collapse_moves_selection_out_of_hidden_content(self, section, state_at):
        state = state_at(section, 4)
        applied, state = run(toggle_fold(0), state)
        assert applied
        assert state.doc.first_child.attrs["collapsed"] is True
        assert state.selection.head == 2

    def test_collapse_keeps_selection_inside_heading(self, section, state_at):
        state = state_at(section, 1)
        _, state = run(toggle_fold(0), state)
        assert state.selection.head == 1

    def test_expand_leaves_selection(self, build, state_at):
        doc = build.doc(build.h(1, "A", collapsed=True), build.p("x"))
        state = state_at(doc, 4)
        _, state = run(toggle_fold(0), state)
        assert state.doc.first_child.attrs["collapsed"] is False
        assert state.selection.head == 4

    def test_single_transaction(self, section, state_at):
        recorder = Recorder(state_at(section, 7))
        toggle_fold(0)(recorder.state, recorder)
        assert len(recorder.transactions) == 1

    def test_not_a_heading(self, section, state_at):
        assert not toggle_fold(3)(state_at(section, 1))

    def test_fold_command_by_name(self, manager, section, state_at):
        _, state = run(manager.command("toggle_fold", 0), state_at(section, 1))
        assert state.doc.first_child.attrs["collapsed"] is True


@pytest.mark.unit
class TestSplitCommands:
    """Tests for Enter and Backspace handling."""

    def test_split_paragraph(self, build, state_at):
        state = state_at(build.doc(build.p("Hello")), 3)
        applied, state = run(split_block, state)
        assert applied
        assert [child.text_content for child in state.doc.content] == ["He", "llo"]
        assert state.selection.head == 5

    def test_split_heading_middle_keeps_type(self, build, state_at):
        state = state_at(build.doc(build.h(2, "Title", collapsed=True)), 3)
        _, state = run(split_block, state)
        first, second = state.doc.content
        assert second.type.name == "heading"
        assert dict(second.attrs) == {"level": 2, "collapsed": None}
        assert (first.text_content, second.text_content) == ("Ti", "tle")

    def test_split_at_end_starts_paragraph(self, build, state_at):
        state = state_at(build.doc(build.h(2, "Title")), 6)
        _, state = run(split_block, state)
        assert [child.type.name for child in state.doc.content] == ["heading", "paragraph"]

    def test_split_deletes_selection_first(self, build, state_at):
        state = state_at(build.doc(build.p("Hello")), 2, 4)
        _, state = run(split_block, state)
        assert [child.text_content for child in state.doc.content] == ["H", "lo"]

    def test_newline_in_code_block(self, build, state_at):
        state = state_at(build.doc(build.code("ab")), 2)
        _, state = run(split_block, state)
        assert state.doc.child_count == 1
        assert state.doc.first_child.text_content == "a\nb"

    def test_split_collapsed_heading_inserts_after_section(self, build, state_at):
        # heading A: 0..3, hidden paragraph: 3..6, heading B: 6..9
        doc = build.doc(build.h(1, "A", collapsed=True), build.p("x"), build.h(1, "B"))
        applied, state = run(split_heading(), state_at(doc, 2))
        assert applied
        new_heading = state.doc.child(2)
        assert new_heading.type.name == "heading"
        assert dict(new_heading.attrs) == {"level": 1, "collapsed": False}
        assert new_heading.content_size == 0
        assert state.selection.head == 7

    def test_split_collapsed_heading_without_hidden_blocks(self, build, state_at):
        doc = build.doc(build.h(2, "A", collapsed=True), build.h(1, "B"))
        _, state = run(split_heading(), state_at(doc, 2))
        assert state.doc.child(1).attrs["level"] == 2
        assert state.selection.head == 4

    def test_split_heading_only_when_collapsed_and_at_end(self, build, state_at):
        expanded = build.doc(build.h(1, "AB"), build.p("x"))
        collapsed = build.doc(build.h(1, "AB", collapsed=True), build.p("x"))
        assert not split_heading()(state_at(expanded, 3))
        assert not split_heading()(state_at(collapsed, 2))

    def test_backspace_at_heading_start(self, build, state_at):
        state = state_at(build.doc(build.h(3, "Title")), 1)
        applied, state = run(backspace_to_paragraph(), state)
        assert applied
        assert state.doc.first_child.type.name == "paragraph"

    def test_backspace_elsewhere_does_nothing(self, build, state_at):
        assert not backspace_to_paragraph()(state_at(build.doc(build.h(3, "Title")), 3))
        assert not backspace_to_paragraph()(state_at(build.doc(build.p("Title")), 1))

    def test_chain_runs_first_applicable(self, build, state_at):
        state = state_at(build.doc(build.h(1, "AB")), 3)
        applied, state = run(chain_commands(split_heading(), split_block), state)
        assert applied
        assert [child.type.name for child in state.doc.content] == ["heading", "paragraph"]


@pytest.mark.unit
class TestToggleMark:
    """Tests for adding and removing marks."""

    def test_add_then_remove(self, build, state_at):
        state = state_at(build.doc(build.p("Hello")), 2, 4)
        _, state = run(toggle_mark("strong"), state)
        assert [child.text for child in state.doc.first_child.content] == ["H", "el", "lo"]
        _, state = run(toggle_mark("strong"), state)
        assert state.doc.first_child.child_count == 1
        assert state.doc.first_child.first_child.marks == ()

    def test_empty_selection_not_handled(self, build, state_at):
        assert not toggle_mark("em")(state_at(build.doc(build.p("Hello")), 2))


@pytest.mark.unit
class TestKeymap:
    """Tests for key name handling and binding resolution."""

    @pytest.mark.parametrize(
        "name, platform, expected",
        [
            ("Ctrl-Shift-1", "linux", "Shift-Ctrl-1"),
            ("Shift-Ctrl-1", "linux", "Shift-Ctrl-1"),
            ("Mod-b", "linux", "Ctrl-b"),
            ("Mod-b", "mac", "Meta-b"),
            ("Cmd-Alt-x", "mac", "Meta-Alt-x"),
            ("Ctrl--", "linux", "Ctrl--"),
            ("Enter", "linux", "Enter"),
        ],
    )
    def test_normalize_key_name(self, name, platform, expected):
        assert normalize_key_name(name, platform) == expected

    def test_unknown_modifier(self):
        with pytest.raises(ValueError):
            normalize_key_name("Hyper-x")

    def test_key_name_from_event(self):
        event = Event("keydown", key="1", data={"ctrl": True, "shift": True})
        assert key_name_from_event(event) == "Shift-Ctrl-1"
        assert key_name_from_event(Event("keydown", key="Enter")) == "Enter"

    def test_contexts_innermost_first(self, build, state_at):
        state = state_at(build.doc(build.quote(build.h(1, "A"))), 2)
        assert Keymap.contexts(state) == ["heading", "blockquote", "doc"]

    def test_scoped_bindings_before_global(self, build, state_at):
        keymap = Keymap()
        calls = []

        def scoped(state, dispatch=None, view=None):
            calls.append("scoped")
            return False

        def fallback(state, dispatch=None, view=None):
            calls.append("global")
            return True

        keymap.bind("Enter", fallback)
        keymap.bind("Enter", scoped, context="heading")
        state = state_at(build.doc(build.h(1, "A")), 1)
        assert keymap.handle("Enter", state)
        assert calls == ["scoped", "global"]

        calls.clear()
        assert keymap.handle("Enter", state_at(build.doc(build.p("A")), 1))
        assert calls == ["global"]

    def test_unbound_key(self, build, state_at):
        assert not Keymap().handle("Ctrl-q", state_at(build.doc(build.p("A")), 1))
        assert "Ctrl-Shift-1" not in Keymap()

    def test_default_heading_shortcut(self, manager, build, state_at):
        state = state_at(build.doc(build.p("Hello")), 2)
        recorder = Recorder(state)
        assert "Ctrl-Shift-2" in manager.keymap
        assert manager.keymap.handle("Ctrl-Shift-2", state, recorder)
        assert recorder.state.doc.first_child.attrs["level"] == 2

    def test_default_enter_in_heading(self, manager, build, state_at):
        # Enter at the end of a collapsed heading goes to the folded-heading handler
        doc = build.doc(build.h(1, "A", collapsed=True), build.p("x"))
        recorder = Recorder(state_at(doc, 2))
        assert manager.keymap.handle("Enter", recorder.state, recorder)
        assert [child.type.name for child in recorder.state.doc.content] == ["heading", "paragraph", "heading"]


@pytest.mark.unit
class TestInputRules:
    """Tests for typed-text triggers."""

    @pytest.mark.parametrize("prefix, level", [("#", 1), ("##", 2), ("####", 4)])
    def test_heading_markers(self, manager, build, state_at, prefix, level):
        end = len(prefix) + 1
        state = state_at(build.doc(build.p(prefix)), end)
        tr = run_input_rules(state, manager.input_rules, end, end, " ")
        assert tr is not None
        heading = tr.doc.first_child
        assert heading.type.name == "heading"
        assert heading.attrs["level"] == level
        assert heading.content_size == 0

    def test_level_outside_configuration(self, manager, build, state_at):
        state = state_at(build.doc(build.p("#####")), 6)
        assert run_input_rules(state, manager.input_rules, 6, 6, " ") is None

    def test_marker_must_start_block(self, manager, build, state_at):
        state = state_at(build.doc(build.p("a#")), 3)
        assert run_input_rules(state, manager.input_rules, 3, 3, " ") is None

    def test_no_rules_in_code_blocks(self, manager, build, state_at):
        state = state_at(build.doc(build.code("#")), 2)
        assert run_input_rules(state, manager.input_rules, 2, 2, " ") is None

    def test_code_fence(self, manager, build, state_at):
        state = state_at(build.doc(build.p("```py")), 6)
        tr = run_input_rules(state, manager.input_rules, 6, 6, " ")
        block = tr.doc.first_child
        assert block.type.name == "code_block"
        assert block.attrs["language"] == "py"
