"""Pure display helpers: media-type glyphs and labels, byte sizes, timestamps, escaped markup."""
import html
import re
from datetime import datetime
from typing import Iterable, List, Optional

from file_manager.schemas.files import FileRecord

IMAGE_GLYPH = "🖼️"
VIDEO_GLYPH = "🎥"
AUDIO_GLYPH = "🎵"
DOCUMENT_GLYPH = "📝"
SPREADSHEET_GLYPH = "📊"
ARCHIVE_GLYPH = "📦"
DEFAULT_GLYPH = "📄"

SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]

# (test, glyph, label); first match wins.
_MEDIA_RULES = [
    (lambda m: m.startswith("image/"), IMAGE_GLYPH, "Images"),
    (lambda m: m.startswith("video/"), VIDEO_GLYPH, "Videos"),
    (lambda m: m.startswith("audio/"), AUDIO_GLYPH, "Audio"),
    (lambda m: "pdf" in m, DEFAULT_GLYPH, "PDF"),
    (lambda m: "word" in m or "document" in m, DOCUMENT_GLYPH, "Documents"),
    (lambda m: "excel" in m or "spreadsheet" in m, SPREADSHEET_GLYPH, "Spreadsheets"),
    (lambda m: "powerpoint" in m or "presentation" in m, SPREADSHEET_GLYPH, "Presentations"),
    (lambda m: "zip" in m or "rar" in m or "archive" in m, ARCHIVE_GLYPH, "Archives"),
    (lambda m: "text/" in m, DEFAULT_GLYPH, "Text"),
]


def _match(mimetype: str):
    for test, glyph, label in _MEDIA_RULES:
        if test(mimetype):
            return glyph, label
    return None


def classify_media_type(mimetype: Optional[str]) -> str:
    if not mimetype:
        return DEFAULT_GLYPH
    matched = _match(mimetype)
    return matched[0] if matched else DEFAULT_GLYPH


def file_type_label(mimetype: Optional[str]) -> str:
    if not mimetype:
        return "Unknown"
    matched = _match(mimetype)
    return matched[1] if matched else "Other"


def unique_file_types(records: Iterable[FileRecord], limit: int = 3) -> List[str]:
    labels = dict.fromkeys(file_type_label(r.mimetype) for r in records)
    return list(labels)[:limit]


def format_byte_size(num_bytes: Optional[int]) -> str:
    """Human readable size, e.g. ``1536 -> "1.5 KB"``.

    Scales by 1024 up to TB and rounds to two decimals with trailing zeros
    stripped. Zero, negative and missing sizes render as ``"0 Bytes"``.
    """
    if not num_bytes or num_bytes < 0:
        return "0 Bytes"
    value = float(num_bytes)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[unit]}"


def total_size(records: Iterable[FileRecord]) -> int:
    return sum(r.size for r in records)


def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return "—"
    return value.strftime("%b %d, %Y, %I:%M %p")


# ── Markup ──────────────────────────────────────────────────────────────────
# Names, descriptions and server messages are user data; they are escaped
# before they reach Streamlit's markdown renderer.

_MARKDOWN_SPECIAL = re.compile(r"([\\`*_{}\[\]()#+\-.!|<>~$:])")


def escape_markdown(text: Optional[str]) -> str:
    """Backslash-escapes markdown syntax so ``text`` renders literally."""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text or "")


def _html_text(text: Optional[str]) -> str:
    # Newlines become <br> so a blank line cannot end the surrounding HTML block.
    return html.escape(text or "", quote=True).replace("\r\n", "\n").replace("\n", "<br>")


def file_card_html(record: FileRecord) -> str:
    name = html.escape(record.original_name, quote=True)
    return (
        f'<div class="file-name" title="{name}">{classify_media_type(record.mimetype)} {name}</div>'
        f'<div class="file-meta">{format_byte_size(record.size)} · {format_timestamp(record.created_at)}</div>'
    )


def description_html(description: Optional[str]) -> str:
    if not description:
        return '<div class="file-desc empty">No description</div>'
    return f'<div class="file-desc">{_html_text(description)}</div>'


def pills_html(labels: Iterable[str]) -> str:
    return "".join(f'<span class="pill">{html.escape(label, quote=True)}</span>' for label in labels)


def preview_html(records: Iterable[FileRecord]) -> str:
    return "".join(
        f'<div class="file-meta">{classify_media_type(r.mimetype)} '
        f'{html.escape(r.original_name, quote=True)} · {format_byte_size(r.size)}</div>'
        for r in records
    )
