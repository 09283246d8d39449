import pytest

from file_manager.services.selection import SelectionTracker
from tests.fixtures.files_api import make_record


@pytest.fixture
def listing():
    return [make_record("a"), make_record("b"), make_record("c")]


@pytest.fixture
def selection(listing):
    return SelectionTracker(lambda: listing)


def test_add_remove_toggle(selection):
    selection.add("a")
    selection.toggle("b")
    selection.toggle("a")
    assert selection.ids == frozenset({"b"})
    selection.remove("b")
    assert len(selection) == 0


def test_selecting_unknown_file_is_noop(selection):
    selection.add("ghost")
    selection.toggle("ghost")
    assert selection.ids == frozenset()


def test_membership(selection):
    selection.add("c")
    assert "c" in selection
    assert selection.contains("c")
    assert not selection.contains("a")


def test_selected_follows_display_order_not_selection_order(selection):
    selection.add("c")
    selection.add("a")
    assert [f.id for f in selection.selected()] == ["a", "c"]


def test_retain_prunes_removed_ids(selection, listing):
    selection.replace(["a", "b", "c"])
    listing.pop(1)
    selection.retain(f.id for f in listing)
    assert selection.ids == frozenset({"a", "c"})


def test_changes_replace_value_and_notify(selection):
    seen = []
    selection.subscribe(seen.append)

    selection.add("a")
    first = selection.ids
    selection.add("b")

    assert first == frozenset({"a"})
    assert seen == [frozenset({"a"}), frozenset({"a", "b"})]


def test_no_notification_without_change(selection):
    seen = []
    selection.subscribe(seen.append)
    selection.clear()
    selection.remove("a")
    assert seen == []


def test_unsubscribe(selection):
    seen = []
    unsubscribe = selection.subscribe(seen.append)
    unsubscribe()
    selection.add("a")
    assert seen == []
