import streamlit as st
import asyncio
import logging
from dotenv import load_dotenv

from file_manager.config import get_settings
from file_manager.schemas.files import UploadItem
from file_manager.services.presentation import (
    classify_media_type,
    description_html,
    escape_markdown,
    file_card_html,
    format_byte_size,
    pills_html,
    preview_html,
)
from file_manager.services.upload import MAX_UPLOAD_BYTES, UploadState
from file_manager.services.workspace import Workspace

load_dotenv()

logging.basicConfig(
    level=get_settings().LOG_LEVEL.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("filemanager.app")

st.set_page_config(page_title="File Management", layout="wide")


def inject_css():
    st.html("""
    <style>
    #MainMenu, footer { visibility: hidden; }
    .block-container { padding-top: 2rem !important; }
    .stApp { background: #f9fafb; }

    /* ── File cards ── */
    .file-name { font-weight: 600; overflow: hidden; text-overflow: ellipsis; white-space: nowrap; }
    .file-meta { color: #6b7280; font-size: 0.8rem; }
    .file-desc { color: #374151; font-size: 0.9rem; }
    .file-desc.empty { color: #9ca3af; font-style: italic; }

    /* ── Bulk bar ── */
    .bulk-count { font-weight: 600; color: #111827; }
    .pill { background: #f3f4f6; border-radius: 6px; padding: 0.1rem 0.5rem; font-size: 0.75rem; margin-right: 0.25rem; }
    </style>
    """)


def get_workspace() -> Workspace:
    # One workspace per browser session; the first render loads the listing.
    if "workspace" not in st.session_state:
        ws = Workspace()
        st.session_state.workspace = ws
        asyncio.run(ws.refresh())
    return st.session_state.workspace


def stash_download(downloaded):
    st.session_state.pending_download = downloaded


def confirmed(_prompt: str) -> bool:
    # Reached only from the explicit "Yes" button of a confirmation panel.
    return True


# ── Banners ─────────────────────────────────────────────────────────────────

def render_banners(ws: Workspace):
    for banner in ws.banners.active():
        col_msg, col_x = st.columns([20, 1])
        with col_msg:
            if banner.level == "error":
                st.error(escape_markdown(banner.message))
            elif banner.level == "warning":
                st.warning(escape_markdown(banner.message))
            else:
                st.success(escape_markdown(banner.message))
        with col_x:
            if st.button("×", key=f"dismiss_{banner.id}"):
                ws.banners.dismiss(banner.id)
                st.rerun()

    downloaded = st.session_state.get("pending_download")
    if downloaded is not None:
        st.download_button(
            f"💾 Save {escape_markdown(downloaded.filename)}",
            data=downloaded.content,
            file_name=downloaded.filename,
            mime=downloaded.media_type or "application/octet-stream",
            on_click=lambda: st.session_state.pop("pending_download", None),
        )


# ── Upload ──────────────────────────────────────────────────────────────────

def render_upload(ws: Workspace):
    uploads = ws.uploads
    st.subheader("Upload New Files")

    if "uploader_key" not in st.session_state:
        st.session_state.uploader_key = 0

    uploading = uploads.state is UploadState.UPLOADING
    chosen = st.file_uploader(
        f"Choose one or more files (max {format_byte_size(MAX_UPLOAD_BYTES)} each)",
        accept_multiple_files=True,
        key=f"uploader_{st.session_state.uploader_key}",
        disabled=uploading,
    )
    uploads.description = st.text_area(
        "Description (optional)",
        value=uploads.description,
        placeholder="Add a description for your file(s)...",
        disabled=uploading,
    )

    if uploads.state is UploadState.IDLE and chosen:
        if st.button("Upload", type="primary"):
            items = [UploadItem(name=f.name, content=f.getvalue(), content_type=f.type) for f in chosen]
            with st.spinner("Uploading..."):
                asyncio.run(uploads.choose(items))
            st.session_state.uploader_key += 1
            st.rerun()

    if uploads.state is UploadState.BATCH_PENDING:
        st.markdown(f"**{len(uploads.batch)} files ready to upload**")
        for index, item in enumerate(uploads.batch):
            col_name, col_rm = st.columns([6, 1])
            with col_name:
                st.text(f"{classify_media_type(item.content_type)} {item.name} ({format_byte_size(item.size)})")
            with col_rm:
                if st.button("Remove", key=f"batch_rm_{index}"):
                    uploads.remove_from_batch(index)
                    st.rerun()

        col_go, col_cancel = st.columns(2)
        with col_go:
            if st.button(f"Upload {len(uploads.batch)} files", type="primary", use_container_width=True):
                with st.spinner("Uploading batch..."):
                    asyncio.run(uploads.submit_batch())
                st.rerun()
        with col_cancel:
            if st.button("Cancel", use_container_width=True):
                uploads.cancel_batch()
                st.rerun()

    outcome = uploads.last_outcome
    if outcome and outcome.errors:
        with st.expander(f"⚠️ {len(outcome.errors)} file(s) failed in the last batch"):
            for err in outcome.errors:
                st.text(f"{err.subject}: {err.error}")
            if st.button("Dismiss", key="dismiss_batch_errors"):
                uploads.dismiss_outcome()
                st.rerun()


# ── Bulk actions ────────────────────────────────────────────────────────────

def render_bulk_actions(ws: Workspace):
    bulk = ws.bulk
    summary = bulk.summary()
    if summary.selected_count == 0:
        return

    with st.container(border=True):
        col_info, col_all, col_clear, col_zip, col_del = st.columns([3, 1, 1, 1, 1])
        with col_info:
            st.markdown(
                f'<span class="bulk-count">{summary.selected_count} of {summary.total_count} files selected</span>',
                unsafe_allow_html=True,
            )
        with col_all:
            if st.button("Deselect All" if bulk.all_selected else "Select All", key="bulk_toggle_all"):
                bulk.toggle_all()
                st.rerun()
        with col_clear:
            if st.button("Clear selection", key="bulk_clear"):
                bulk.deselect_all()
                st.rerun()
        with col_zip:
            if st.button("📦 Download ZIP", key="bulk_zip", disabled=bulk.busy):
                with st.spinner("Preparing archive..."):
                    asyncio.run(bulk.bulk_download(saver=stash_download))
                st.rerun()
        with col_del:
            if st.button("🗑️ Delete Selected", key="bulk_del", type="primary", disabled=bulk.busy):
                st.session_state.confirm_bulk_delete = True

        if st.session_state.get("confirm_bulk_delete", False):
            st.warning(bulk.delete_prompt())
            col_y, col_n = st.columns(2)
            with col_y:
                if st.button("Yes, Delete", key="bulk_del_yes", type="primary"):
                    with st.spinner("Deleting files..."):
                        asyncio.run(bulk.bulk_delete(confirm=confirmed))
                    del st.session_state["confirm_bulk_delete"]
                    st.rerun()
            with col_n:
                if st.button("Cancel", key="bulk_del_no"):
                    del st.session_state["confirm_bulk_delete"]
                    st.rerun()

        st.markdown(
            f"**Total size:** {pills_html([summary.total_size])} "
            f"**File types:** {pills_html(summary.file_types)}",
            unsafe_allow_html=True,
        )
        st.markdown(preview_html(summary.preview), unsafe_allow_html=True)
        if summary.remaining:
            st.caption(f"... and {summary.remaining} more files")


# ── File list ───────────────────────────────────────────────────────────────

def render_file(ws: Workspace, record):
    files = ws.files
    busy = files.busy.get(record.id)
    selected = ws.selection.contains(record.id)

    with st.container(border=True):
        col_sel, col_name = st.columns([1, 12])
        with col_sel:
            if st.button("☑" if selected else "☐", key=f"sel_{record.id}"):
                ws.selection.toggle(record.id)
                st.rerun()
        with col_name:
            st.markdown(file_card_html(record), unsafe_allow_html=True)

        if st.session_state.get("editing_id") == record.id:
            text = st.text_area("Description", value=record.description or "", key=f"edit_{record.id}",
                                placeholder="Add description...")
            col_save, col_cancel = st.columns(2)
            with col_save:
                if st.button("Save", key=f"save_{record.id}", type="primary"):
                    result = asyncio.run(files.update_description(record.id, text))
                    if result.success:
                        del st.session_state["editing_id"]
                    st.rerun()
            with col_cancel:
                if st.button("Cancel", key=f"cancel_edit_{record.id}"):
                    del st.session_state["editing_id"]
                    st.rerun()
        else:
            st.markdown(description_html(record.description), unsafe_allow_html=True)

        col_dl, col_edit, col_del = st.columns(3)
        with col_dl:
            label = "Downloading..." if busy == "downloading" else "Download"
            if st.button(label, key=f"dl_{record.id}", disabled=bool(busy)):
                asyncio.run(files.download(record.id, saver=stash_download))
                st.rerun()
        with col_edit:
            if st.button("Edit", key=f"edit_btn_{record.id}", disabled=bool(busy)):
                st.session_state.editing_id = record.id
                st.rerun()
        with col_del:
            if st.button("Delete", key=f"del_{record.id}", disabled=bool(busy)):
                st.session_state[f"confirm_del_{record.id}"] = True

        if st.session_state.get(f"confirm_del_{record.id}", False):
            st.warning(escape_markdown(f'Are you sure you want to delete "{record.original_name}"?'))
            col_y, col_n = st.columns(2)
            with col_y:
                if st.button("Yes, Delete", key=f"yes_{record.id}", type="primary"):
                    with st.spinner("Deleting..."):
                        asyncio.run(files.delete(record.id, confirm=confirmed))
                    del st.session_state[f"confirm_del_{record.id}"]
                    st.rerun()
            with col_n:
                if st.button("Cancel", key=f"cancel_{record.id}"):
                    del st.session_state[f"confirm_del_{record.id}"]
                    st.rerun()


def render_file_list(ws: Workspace):
    files = ws.files.files
    count = len(files)
    st.subheader(f"Your Files ({count} file{'s' if count != 1 else ''})" if count else "Your Files")

    if ws.files.loading and not files:
        st.info("Loading files...")
        return
    if not files:
        st.info("No files uploaded yet. Upload your first file to get started.")
        return

    render_bulk_actions(ws)
    cols = st.columns(3)
    for index, record in enumerate(files):
        with cols[index % 3]:
            render_file(ws, record)


def main_app_view():
    inject_css()
    ws = get_workspace()

    col_title, col_refresh = st.columns([6, 1])
    with col_title:
        st.title("📂 File Management")
    with col_refresh:
        if st.button("🔄 Refresh", use_container_width=True):
            with st.spinner("Loading files..."):
                asyncio.run(ws.refresh())
            st.rerun()

    render_banners(ws)
    render_upload(ws)
    st.divider()
    render_file_list(ws)


if __name__ == "__main__":
    main_app_view()
