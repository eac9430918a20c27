#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/test_editor_view.py
"""Unit tests for the editor view: rendering, node view bindings and input routing."""

import pytest

from richdoc.constants import LOCATION_CHANGED, THEME_CHANGED
from richdoc.exceptions import NodeViewLifecycleError, TransactionRejectedError
from richdoc.extensions.manager import ExtensionManager
from richdoc.hooks import HookManager
from richdoc.model.selection import NodeSelection, TextSelection
from richdoc.model.state import EditorState, Plugin, PluginKey
from richdoc.options.editor import EditorOptions
from richdoc.view.dom import Element, Event
from richdoc.view.node_view import NodeViewState

LOCATION = "https://docs.example.com/doc/abc/edit#old"


@pytest.fixture
def messages():
    return []


@pytest.fixture
def make_view(manager, bus, messages):
    def factory(doc, anchor=1, head=None, **kwargs):
        state = manager.create_state(doc, TextSelection.create(doc, anchor, head))
        kwargs.setdefault("bus", bus)
        kwargs.setdefault("location", LOCATION)
        kwargs.setdefault("notify", messages.append)
        return manager.create_view(state, **kwargs)

    return factory


@pytest.fixture
def image_doc(build):
    # paragraph: 0..5, "a": 1..2, image: 2..3, "b": 3..4
    return build.doc(build.p("a", build.img("a.png"), "b"))


def mousedown(element):
    event = Event("mousedown")
    element.dispatch_event(event)
    return event


@pytest.mark.unit
class TestRendering:
    """Tests for the rendered element tree."""

    def test_root_element(self, make_view, build):
        view = make_view(build.doc(build.p("Hello")))
        assert view.dom.tag == "div"
        assert "ProseMirror" in view.dom.class_list
        assert view.dom.get_attribute("contenteditable") == "true"

    def test_heading_structure(self, make_view, build):
        view = make_view(build.doc(build.h(2, "Overview"), build.p("x")))
        anchor, heading, paragraph = view.dom.children
        assert heading.tag == "h2"
        actions, content = heading.children
        assert "heading-actions" in actions.class_list
        assert [button.class_name for button in actions.children] == ["heading-anchor", "heading-fold"]
        assert actions.children[0].text_content == "#"
        assert "heading-content" in content.class_list
        assert content.text_content == "Overview"
        assert paragraph.tag == "p"

    def test_anchor_is_previous_sibling_of_heading(self, make_view, build):
        view = make_view(build.doc(build.p("intro"), build.h(1, "Overview"), build.h(1, "Overview")))
        headings = view.dom.query_selector_all("h1")
        assert [h.previous_sibling.id for h in headings] == ["overview", "overview-1"]
        assert all("heading-name" in h.previous_sibling.class_list for h in headings)

    def test_heading_offset(self, build, bus):
        offset_manager = ExtensionManager.default(EditorOptions(heading_offset=1))
        doc = offset_manager.schema.node_from_json(build.doc(build.h(1, "Title")).to_json())
        view = offset_manager.create_view(offset_manager.create_state(doc), bus=bus)
        assert view.dom.query_selector("h2") is not None

    def test_marks_wrap_text(self, make_view, build, schema):
        doc = build.doc(build.p("a", schema.text("bold", [schema.mark("strong")])))
        view = make_view(doc)
        assert view.dom.query_selector("strong").text_content == "bold"

    def test_collapsed_heading_hides_section(self, make_view, build):
        view = make_view(build.doc(build.h(1, "A", collapsed=True), build.p("x"), build.h(1, "B")))
        paragraph = view.dom.query_selector("p")
        assert "folded-content" in paragraph.class_list
        assert "collapsed" in view.dom.query_selector(".heading-fold").class_list
        assert "folded-content" not in view.dom.query_selector_all("h1")[1].class_list

    def test_positions(self, make_view, build):
        view = make_view(build.doc(build.h(1, "Title"), build.p("Hello")))
        paragraph = view.element_at(7)
        assert paragraph.tag == "p"
        assert view.pos_at_dom(paragraph) == 8
        assert view.pos_at_dom(view.dom.query_selector(".heading-fold")) == 1
        with pytest.raises(ValueError):
            view.pos_at_dom(Element("p"))

    def test_html_output(self, make_view, build):
        html = make_view(build.doc(build.p("a < b"))).to_html()
        assert "<p dir=\"auto\">a &lt; b</p>" in html

    def test_widgets_reused_when_unchanged(self, make_view, build):
        view = make_view(build.doc(build.h(1, "Title"), build.p("Hello")))
        anchor = view.dom.children[0]
        view.dispatch(view.state.tr.insert_text("!", 13))
        assert view.dom.children[0] is anchor


@pytest.mark.unit
class TestHeadingActions:
    """Tests for the copy-link and fold buttons."""

    def test_copy_link(self, make_view, build, messages):
        view = make_view(build.doc(build.h(2, "Overview")))
        event = mousedown(view.dom.query_selector(".heading-anchor"))
        assert event.default_prevented
        assert view.clipboard.text == "https://docs.example.com/doc/abc#overview"
        assert messages == ["Link copied to clipboard"]

    def test_copy_link_uses_current_location(self, make_view, build):
        view = make_view(build.doc(build.h(1, "Intro"), build.h(1, "Intro")))
        view.set_location("https://docs.example.com/doc/xyz")
        mousedown(view.dom.query_selector_all(".heading-anchor")[1])
        assert view.clipboard.history == ["https://docs.example.com/doc/xyz#intro-1"]

    def test_missing_anchor(self, make_view, build, messages):
        view = make_view(build.doc(build.h(1, "Overview")))
        view.dom.children[0].remove()
        with pytest.raises(NodeViewLifecycleError):
            mousedown(view.dom.query_selector(".heading-anchor"))
        assert view.clipboard.history == []
        assert messages == []

    def test_fold_button_toggles(self, make_view, build):
        view = make_view(build.doc(build.h(1, "A"), build.p("x")), anchor=4)
        mousedown(view.dom.query_selector(".heading-fold"))
        assert view.state.doc.first_child.attrs["collapsed"] is True
        assert view.state.selection.head == 2
        assert "folded-content" in view.dom.query_selector("p").class_list

        mousedown(view.dom.query_selector(".heading-fold"))
        assert view.state.doc.first_child.attrs["collapsed"] is False
        assert "folded-content" not in view.dom.query_selector("p").class_list


@pytest.mark.unit
class TestNodeViewBindings:
    """Tests for component-backed node views hosted by the view."""

    def test_image_bound_to_node_view(self, make_view, image_doc):
        view = make_view(image_doc)
        assert list(view.node_views) == [2]
        container = view.element_at(2)
        assert container is view.node_views[2].dom
        assert "component-image" in container.class_list
        assert container.query_selector("img").get_attribute("src") == "a.png"
        assert view.pos_at_dom(container) == 2

    def test_node_view_follows_its_node(self, make_view, image_doc):
        view = make_view(image_doc)
        binding = view.node_views[2]
        view.dispatch(view.state.tr.insert_text("zz", 1))
        assert view.node_views == {4: binding}
        assert binding.get_pos() == 4
        assert binding.state is NodeViewState.RENDERED

    def test_deleted_node_destroys_binding(self, make_view, image_doc, bus):
        view = make_view(image_doc)
        binding = view.node_views[2]
        view.dispatch(view.state.tr.delete(2, 3))
        assert binding.destroyed
        assert view.node_views == {}
        assert bus.channel(THEME_CHANGED).subscriber_count == 0
        assert bus.channel(LOCATION_CHANGED).subscriber_count == 0

    def test_node_selection(self, make_view, image_doc):
        view = make_view(image_doc)
        view.dispatch(view.state.tr.set_selection(NodeSelection.create(view.state.doc, 2)))
        binding = view.node_views[2]
        assert binding.is_selected
        assert "ProseMirror-selectednode" in binding.dom.query_selector("img").class_list

        view.dispatch(view.state.tr.set_selection(TextSelection.create(view.state.doc, 1)))
        assert not binding.is_selected

    def test_selected_plain_node_marked(self, make_view, build, schema):
        view = make_view(build.doc(build.p("a"), schema.node("horizontal_rule")))
        view.dispatch(view.state.tr.set_selection(NodeSelection.create(view.state.doc, 3)))
        assert "selected-node" in view.element_at(3).class_list

    def test_theme_change_rerenders(self, make_view, image_doc):
        def themed(props):
            return Element("img", {"src": props.node.attrs["src"], "data-theme": props.theme})

        view = make_view(image_doc, node_views={"image": themed})
        view.set_theme("dark")
        assert view.node_views[2].dom.query_selector("img").get_attribute("data-theme") == "dark"

    def test_events_inside_component_left_alone(self, make_view, image_doc):
        view = make_view(image_doc)
        img = view.node_views[2].dom.query_selector("img")
        for event_type in ("dragstart", "mousedown"):
            event = Event(event_type)
            img.dispatch_event(event)
            assert not event.default_prevented
        assert view.state.selection.head == 1
        assert view.clipboard.history == []

    def test_destroy(self, make_view, image_doc, bus):
        view = make_view(image_doc)
        binding = view.node_views[2]
        view.destroy()
        assert view.destroyed
        assert binding.state is NodeViewState.DESTROYED
        assert bus.channel(THEME_CHANGED).subscriber_count == 0
        with pytest.raises(NodeViewLifecycleError):
            view.dispatch(view.state.tr.insert_text("x", 1))


@pytest.mark.unit
class TestDispatch:
    """Tests for transaction dispatch and input handling."""

    def test_rejected_transaction_leaves_view(self, make_view, build):
        view = make_view(build.doc(build.p("Hello"), build.p("World")))
        before = view.to_html()
        with pytest.raises(TransactionRejectedError):
            view.dispatch(view.state.tr.replace(3, 10))
        assert view.to_html() == before

    def test_notifications_delivered_after_update(self, manager, build, bus):
        doc = build.doc(build.p("Hello"))
        key = PluginKey("publisher")

        def publish_on_change(tr, value, old_state, new_state):
            if tr.doc_changed:
                bus.publish(LOCATION_CHANGED)
            return value

        plugins = [*manager.plugins, Plugin(key=key, apply=publish_on_change)]
        state = EditorState.create(manager.schema, doc, TextSelection.create(doc, 6), plugins)
        view = manager.create_view(state, bus=bus)
        seen = []
        bus.subscribe(LOCATION_CHANGED, lambda: seen.append(view.state.doc.text_content))
        view.dispatch(view.state.tr.insert_text("!"))
        assert seen == ["Hello!"]

    def test_post_apply_hook_observes(self, manager, build, bus):
        hooks = HookManager()
        observed = []
        hooks.register_hook("post_apply", lambda doc, context: observed.append(doc.text_content) or doc)
        doc = build.doc(build.p("Hello"))
        view = manager.create_view(manager.create_state(doc), bus=bus, hooks=hooks)
        view.dispatch(view.state.tr.insert_text("!", 6))
        assert observed == ["Hello!"]

    def test_keydown_runs_keymap(self, make_view, build):
        view = make_view(build.doc(build.p("Hello")), anchor=2)
        event = Event("keydown", key="2", data={"ctrl": True, "shift": True})
        view.dom.dispatch_event(event)
        assert event.default_prevented
        assert view.state.doc.first_child.type.name == "heading"
        assert view.dom.query_selector("h2") is not None

    def test_text_input_runs_input_rules(self, make_view, build):
        view = make_view(build.doc(build.p("##")), anchor=3)
        view.dom.dispatch_event(Event("beforeinput", data={"text": " "}))
        heading = view.state.doc.first_child
        assert heading.type.name == "heading"
        assert heading.attrs["level"] == 2

    def test_text_input_inserts_text(self, make_view, build):
        view = make_view(build.doc(build.p("Hello")), anchor=6)
        assert view.handle_text_input(" world")
        assert view.state.doc.first_child.text_content == "Hello world"
        assert view.state.selection.head == 12

    def test_read_only(self, make_view, build):
        view = make_view(build.doc(build.p("Hello")), anchor=2)
        view.set_editable(False)
        assert view.dom.get_attribute("contenteditable") == "false"
        assert not view.handle_key("Shift-Ctrl-1")
        assert not view.handle_text_input("x")
        assert view.state.doc.first_child.type.name == "paragraph"
