import logging

import pytest

from lesson_toolkit.core.models import h
from lesson_toolkit.core.services.section_store import OperationResult, SectionStore
from lesson_toolkit.core.tree import extract_id

NEW_ID = "section-1700000000500"
STORE_LOGGER = "lesson_toolkit.core.services.section_store"


def _ids(store):
    return [extract_id(s) for s in store.sections]


class TestAddSectionAfter:
    def test_inserts_placeholder_after_owner(self, store):
        result = store.add_section_after("s1")

        assert isinstance(result, OperationResult)
        assert result.success
        assert result.details == {"section_id": "s1", "new_id": NEW_ID, "index": 1}
        assert _ids(store) == ["s1", NEW_ID, "s2"]

    def test_placeholder_shape(self, store):
        store.add_section_after("s2")
        placeholder = store.sections[-1]

        assert placeholder.type.name == "FullWidthLayout"
        assert placeholder.key == f"layout-{NEW_ID}"
        assert placeholder.props == {"maxWidth": "xl"}
        section = placeholder.children[0]
        assert section.type.name == "Section"
        assert section.id == NEW_ID
        section_input = section.children[0]
        assert section_input.type.name == "SectionInput"
        assert section_input.props["sectionId"] == NEW_ID
        assert section_input.props["placeholder"] == "Type '/' for commands"
        assert section_input.id is None

    def test_nested_id_resolves_to_top_level_owner(self, store):
        store.add_section_after("s1")
        # the new section id lives two levels deep inside its wrapper
        store._clock = lambda: 1700000001.0
        store.add_section_after(NEW_ID)
        assert _ids(store) == ["s1", NEW_ID, "section-1700000001000", "s2"]

    def test_unknown_id_is_noop_with_diagnostic(self, store, host, caplog):
        before = store.sections
        with caplog.at_level(logging.WARNING, logger=STORE_LOGGER):
            result = store.add_section_after("missing")

        assert not result.success
        assert store.sections is before
        assert "missing" in caplog.text
        assert host.messages == []

    def test_minted_ids_never_collide(self, store):
        store.add_section_after("s1")
        store.add_section_after("s1")
        assert _ids(store) == ["s1", "section-1700000000501", NEW_ID, "s2"]


class TestCommitText:
    def test_replaces_only_target_content(self, store, two_sections):
        result = store.commit_text("s1", "hello")

        assert result.success
        s1_section = store.sections[0].children[0]
        assert s1_section.id == "s1"
        assert s1_section.children == (h("p", {"className": "lead"}, "hello"),)
        assert store.sections[0].props == two_sections[0].props
        assert store.sections[1] is two_sections[1]

    def test_journals_add_edit(self, store, journal):
        store.commit_text("s1", "hello")

        assert len(journal) == 1
        entry = journal.entries[0]
        assert entry.operation == "add"
        assert entry.details == {"sectionId": "s1", "content": "hello"}

    def test_record_false_skips_journal(self, store, journal):
        store.commit_text("s1", "hello", record=False)
        assert len(journal) == 0

    def test_without_journal_still_updates(self, two_sections, editor_config, caplog):
        store = SectionStore(two_sections, editor_config=editor_config)
        with caplog.at_level(logging.WARNING, logger=STORE_LOGGER):
            result = store.commit_text("s2", "updated")

        assert result.success
        assert store.sections[1].children[0].children[0].children == ("updated",)
        assert "journal not available" in caplog.text

    def test_journal_failure_is_logged_not_raised(self, two_sections, editor_config):
        class BrokenJournal:
            def add_structure_edit(self, edit):
                raise RuntimeError("offline")

        store = SectionStore(two_sections, journal=BrokenJournal(), editor_config=editor_config)
        assert store.commit_text("s1", "hello").success

    def test_blank_text_is_ignored(self, store, journal):
        before = store.sections
        assert not store.commit_text("s1", "   ").success
        assert store.sections is before
        assert len(journal) == 0

    def test_unknown_id_leaves_sections_but_is_journaled(self, store, journal):
        before = store.sections
        result = store.commit_text("nope", "hello")
        assert not result.success
        assert store.sections is before
        assert len(journal) == 1
        assert journal.entries[0].details == {"sectionId": "nope", "content": "hello"}

    def test_unknown_id_with_record_false_skips_journal(self, store, journal):
        assert not store.commit_text("nope", "hello", record=False).success
        assert len(journal) == 0

    def test_commit_into_new_placeholder(self, store):
        store.add_section_after("s1")
        placeholder_input = store.sections[1].children[0].children[0]
        commit = placeholder_input.props["onCommit"]

        assert commit(NEW_ID, "typed").success
        assert store.sections[1].children[0].children == (h("p", {"className": "lead"}, "typed"),)


class TestReorder:
    def test_pass_through_and_notifies_host(self, store, host, two_sections):
        a, b = two_sections
        result = store.reorder([b, a])

        assert result.success
        assert list(store.sections) == [b, a]
        assert host.messages == [{"type": "commit-section-reorder", "sectionIds": ["s2", "s1"]}]

    @pytest.mark.parametrize("order", [(1, 0), (0, 1)])
    def test_result_equals_new_order(self, store, two_sections, order):
        new_order = [two_sections[i] for i in order]
        store.reorder(new_order)
        assert list(store.sections) == new_order

    def test_wrapper_key_prefix_is_stripped(self, editor_config, host):
        # the wrapped node carries no id of its own
        anonymous = h("FullWidthLayout", None, h("div", None, "no id here"), key="layout-section-42")
        store = SectionStore([anonymous], host=host, editor_config=editor_config)
        store.reorder([anonymous])
        assert host.messages[-1]["sectionIds"] == ["section-42"]

    def test_falls_back_to_extracted_id_then_unknown(self, editor_config, host):
        wrapped = h("GridLayout", None, h("Section", {"id": "grid-a"}), key="grid")
        anonymous = h("div", None, "plain")
        store = SectionStore([wrapped, anonymous], host=host, editor_config=editor_config)
        store.reorder([anonymous, wrapped])
        assert host.messages[-1]["sectionIds"] == ["unknown", "grid-a"]

    def test_non_permutation_accepted_with_warning(self, store, two_sections, caplog):
        with caplog.at_level(logging.WARNING, logger=STORE_LOGGER):
            store.reorder([two_sections[0]])

        assert list(store.sections) == [two_sections[0]]
        assert "not a permutation" in caplog.text

    def test_host_failure_does_not_raise(self, two_sections, editor_config):
        class BrokenHost:
            def post_message(self, payload):
                raise OSError("frame gone")

        store = SectionStore(two_sections, host=BrokenHost(), editor_config=editor_config)
        assert store.reorder(list(reversed(two_sections))).success


class TestDeleteSection:
    def test_removes_whole_top_level_owner(self, editor_config, host):
        e = h(
            "SplitLayout",
            None,
            h("div", None, h("Section", {"id": "outer"}, h("Section", {"id": "x"}))),
            key="E",
        )
        other = h("FullWidthLayout", None, h("Section", {"id": "keep"}), key="F")
        store = SectionStore([e, other], host=host, editor_config=editor_config)

        result = store.delete_section("x")

        assert result.success
        assert list(store.sections) == [other]
        assert host.messages == [{"type": "commit-section-delete", "sectionId": "x"}]

    def test_reorder_then_delete(self, store, two_sections, host):
        a, b = two_sections
        store.reorder([b, a])
        store.delete_section(extract_id(b))

        assert list(store.sections) == [a]
        assert [m["type"] for m in host.messages] == ["commit-section-reorder", "commit-section-delete"]

    def test_unknown_id_still_notifies(self, store, host):
        before = store.sections
        result = store.delete_section("ghost")

        assert not result.success
        assert store.sections == before
        assert host.messages == [{"type": "commit-section-delete", "sectionId": "ghost"}]


class TestStoreState:
    def test_replace_all_is_full_swap(self, store, wrapped_section):
        fresh = [wrapped_section("n1")]
        store.replace_all(fresh)
        assert list(store.sections) == fresh

    def test_replace_all_warns_on_duplicate_ids(self, store, wrapped_section, caplog):
        with caplog.at_level(logging.WARNING, logger=STORE_LOGGER):
            store.replace_all([wrapped_section("dup"), wrapped_section("dup", key="other")])
        assert "Duplicate section id 'dup'" in caplog.text

    def test_section_ids(self, store):
        assert store.section_ids() == ["s1", "s2"]

    def test_listeners_receive_new_lists(self, store):
        received = []
        unsubscribe = store.subscribe(received.append)
        store.add_section_after("s1")
        unsubscribe()
        store.delete_section("s1")

        assert len(received) == 1
        assert len(received[0]) == 3

    def test_failing_listener_is_isolated(self, store):
        def broken(sections):
            raise ValueError("listener bug")

        store.subscribe(broken)
        assert store.add_section_after("s1").success
        assert len(store) == 3

    def test_defaults_from_packaged_config(self, two_sections):
        store = SectionStore(two_sections, clock=lambda: 2.0)
        store.add_section_after("s1")
        placeholder = store.sections[1]
        assert placeholder.key == "layout-section-2000"
        assert placeholder.type.name == "FullWidthLayout"
