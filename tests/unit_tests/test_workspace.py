"""End-to-end flows through the wired workspace."""
import pytest

from file_manager.config import get_settings
from file_manager.schemas.files import UploadItem
from file_manager.services.workspace import Workspace


@pytest.mark.asyncio
async def test_upload_into_empty_listing(workspace, fake_api):
    await workspace.refresh()
    assert workspace.files.files == ()

    result = await workspace.uploads.choose([UploadItem(name="report.pdf", content=b"\x07" * 2048)])

    assert result.success
    [record] = workspace.files.files
    assert record.original_name == "report.pdf"
    assert record.size == 2048
    assert record.mimetype == "application/pdf"
    assert fake_api.find(record.id) is not None


@pytest.mark.asyncio
async def test_single_delete_prunes_selection(seeded_workspace):
    await seeded_workspace.refresh()
    seeded_workspace.bulk.select_all()

    await seeded_workspace.files.delete("b", confirm=lambda prompt: True)

    assert seeded_workspace.selection.ids == frozenset({"a", "c"})
    # The wired selection is pruned together with the list, so the remaining
    # files stay fully selected. Without the wiring the predicate drops to
    # false: see test_all_selected_requires_exact_cover_of_list.
    assert seeded_workspace.bulk.all_selected


@pytest.mark.asyncio
async def test_reload_prunes_selection_of_files_gone_on_server(seeded_workspace, seeded_api):
    await seeded_workspace.refresh()
    seeded_workspace.selection.add("a")
    seeded_workspace.selection.add("c")
    seeded_api.records = [r for r in seeded_api.records if r["id"] != "a"]

    await seeded_workspace.refresh()

    assert seeded_workspace.selection.ids == frozenset({"c"})


@pytest.mark.asyncio
async def test_closed_workspace_stops_applying_results(seeded_client):
    ws = Workspace(seeded_client)
    seen = []
    ws.files.subscribe(seen.append)
    ws.close()

    result = await ws.refresh()

    assert result.success
    assert ws.files.files == ()
    assert seen == []


def test_default_client_comes_from_settings(monkeypatch):
    monkeypatch.setenv("API_BASE_URL", "http://files.internal:9000")
    get_settings.cache_clear()
    try:
        ws = Workspace()
        assert ws.api.base_url == "http://files.internal:9000/api"
        ws.close()
    finally:
        get_settings.cache_clear()
