import pytest

from file_manager.services.presentation import (
    ARCHIVE_GLYPH,
    AUDIO_GLYPH,
    DEFAULT_GLYPH,
    DOCUMENT_GLYPH,
    IMAGE_GLYPH,
    SPREADSHEET_GLYPH,
    VIDEO_GLYPH,
    classify_media_type,
    description_html,
    escape_markdown,
    file_card_html,
    file_type_label,
    format_byte_size,
    format_timestamp,
    pills_html,
    preview_html,
    unique_file_types,
)
from tests.fixtures.files_api import make_record


@pytest.mark.parametrize("num_bytes, expected", [
    (0, "0 Bytes"),
    (1, "1 Bytes"),
    (1023, "1023 Bytes"),
    (1024, "1 KB"),
    (1536, "1.5 KB"),
    (2048, "2 KB"),
    (1024 * 1024, "1 MB"),
    (int(1.25 * 1024 ** 3), "1.25 GB"),
    (5 * 1024 ** 4, "5 TB"),
    (2048 * 1024 ** 4, "2048 TB"),
])
def test_format_byte_size(num_bytes, expected):
    assert format_byte_size(num_bytes) == expected


def test_format_byte_size_rounds_to_two_decimals():
    assert format_byte_size(1000 * 1024 + 7) == "1000.01 KB"


@pytest.mark.parametrize("num_bytes", [None, -1])
def test_format_byte_size_degenerate_input(num_bytes):
    assert format_byte_size(num_bytes) == "0 Bytes"


def test_format_byte_size_never_raises_over_wide_range():
    for exponent in range(0, 60):
        assert format_byte_size(2 ** exponent)


@pytest.mark.parametrize("mimetype", ["image/png", "image/jpeg", "image/svg+xml", "image/x-anything-pdf"])
def test_every_image_type_is_an_image(mimetype):
    assert classify_media_type(mimetype) == IMAGE_GLYPH


@pytest.mark.parametrize("mimetype, glyph", [
    ("video/mp4", VIDEO_GLYPH),
    ("audio/mpeg", AUDIO_GLYPH),
    ("application/pdf", DEFAULT_GLYPH),
    ("application/msword", DOCUMENT_GLYPH),
    ("application/vnd.openxmlformats-officedocument.wordprocessingml.document", DOCUMENT_GLYPH),
    ("application/vnd.ms-excel", SPREADSHEET_GLYPH),
    ("application/vnd.ms-powerpoint", SPREADSHEET_GLYPH),
    ("application/zip", ARCHIVE_GLYPH),
    ("application/x-rar-compressed", ARCHIVE_GLYPH),
    ("text/plain", DEFAULT_GLYPH),
    ("application/octet-stream", DEFAULT_GLYPH),
    (None, DEFAULT_GLYPH),
    ("", DEFAULT_GLYPH),
])
def test_classify_media_type(mimetype, glyph):
    assert classify_media_type(mimetype) == glyph


def test_first_matching_rule_wins():
    # "spreadsheet" would match, but "document" is checked first.
    mimetype = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert classify_media_type(mimetype) == DOCUMENT_GLYPH
    assert file_type_label(mimetype) == "Documents"


def test_file_type_labels():
    assert file_type_label(None) == "Unknown"
    assert file_type_label("image/gif") == "Images"
    assert file_type_label("application/pdf") == "PDF"
    assert file_type_label("application/x-unknown") == "Other"


def test_unique_file_types_keeps_first_three_in_order():
    records = [
        make_record("1", mimetype="image/png"),
        make_record("2", mimetype="image/jpeg"),
        make_record("3", mimetype="application/pdf"),
        make_record("4", mimetype="text/plain"),
        make_record("5", mimetype="video/mp4"),
    ]
    assert unique_file_types(records) == ["Images", "PDF", "Text"]


def test_format_timestamp():
    record = make_record("1")
    assert format_timestamp(record.created_at) == "Jan 05, 2026, 09:30 AM"
    assert format_timestamp(None) == "—"


# ── Markup ──────────────────────────────────────────────────────────────────

HOSTILE_NAME = '<img src=x onerror=alert(1)>"evil'


def test_file_card_escapes_name_in_text_and_attribute():
    markup = file_card_html(make_record("1", HOSTILE_NAME))

    assert "<img" not in markup
    assert 'title="&lt;img src=x onerror=alert(1)&gt;&quot;evil"' in markup
    assert f"{DEFAULT_GLYPH} &lt;img src=x onerror=alert(1)&gt;&quot;evil</div>" in markup
    assert "100 Bytes · Jan 05, 2026, 09:30 AM" in markup


def test_description_is_rendered_as_literal_text():
    markup = description_html("<b>bold</b> *md*")
    assert markup == '<div class="file-desc">&lt;b&gt;bold&lt;/b&gt; *md*</div>'


def test_description_blank_lines_stay_inside_the_block():
    markup = description_html("first\n\n<script>x</script>")
    assert "\n" not in markup
    assert markup == '<div class="file-desc">first<br><br>&lt;script&gt;x&lt;/script&gt;</div>'


def test_missing_description_placeholder():
    assert description_html(None) == '<div class="file-desc empty">No description</div>'
    assert description_html("") == '<div class="file-desc empty">No description</div>'


def test_pills_and_preview_escape_their_text():
    assert pills_html(["Images", "<i>x</i>"]) == (
        '<span class="pill">Images</span><span class="pill">&lt;i&gt;x&lt;/i&gt;</span>'
    )
    preview = preview_html([make_record("1", HOSTILE_NAME, mimetype="image/png")])
    assert "<img" not in preview
    assert "&lt;img" in preview


def test_escape_markdown():
    assert escape_markdown("**bold** [link](x)") == r"\*\*bold\*\* \[link\]\(x\)"
    assert escape_markdown("report_v2.pdf") == r"report\_v2\.pdf"
    assert escape_markdown(None) == ""
