"""Tests for notification message field extraction."""

from dashboard.services.message_parser import extract_fields

SAMPLE_MESSAGE = (
    "<del>Old price: $99.99</del>\n"
    "**New price: $79.99** \n"
    "**20% discount applied!**\n"
    "---\n\n"
    "[[Watch URL](https://www.example.com/product/test-product-123)] "
    "[[Diff URL](https://cd.example.com/diff/0f1e2d3c-4b5a-4978-8a9b-0c1d2e3f4a5b)] "
    "[[Edit](https://cd.example.com/edit/0f1e2d3c-4b5a-4978-8a9b-0c1d2e3f4a5b#general)]"
)


class TestLinks:
    def test_watch_url(self):
        fields = extract_fields("[Watch URL](https://shop.example/item?id=7)")
        assert fields.watch_url == "https://shop.example/item?id=7"

    def test_all_links_from_notification(self):
        fields = extract_fields(SAMPLE_MESSAGE)
        assert fields.watch_url == "https://www.example.com/product/test-product-123"
        assert fields.diff_url == "https://cd.example.com/diff/0f1e2d3c-4b5a-4978-8a9b-0c1d2e3f4a5b"
        assert fields.edit_url == (
            "https://cd.example.com/edit/0f1e2d3c-4b5a-4978-8a9b-0c1d2e3f4a5b#general"
        )

    def test_edit_url_label_variant(self):
        fields = extract_fields("[Edit URL](https://cd.example.com/edit/x)")
        assert fields.edit_url == "https://cd.example.com/edit/x"

    def test_watcher_uuid_from_diff_link(self):
        fields = extract_fields(SAMPLE_MESSAGE)
        assert fields.watcher_uuid == "0f1e2d3c-4b5a-4978-8a9b-0c1d2e3f4a5b"

    def test_non_uuid_link_segment_is_ignored(self):
        fields = extract_fields("[Diff URL](https://cd.example.com/diff/test-uuid)")
        assert fields.diff_url == "https://cd.example.com/diff/test-uuid"
        assert fields.watcher_uuid is None


class TestValues:
    def test_old_and_new_value(self):
        fields = extract_fields("<del>Old: $99.99</del>\n**New: $79.99**")
        assert fields.old_value == "Old: $99.99"
        assert fields.new_value == "New: $79.99"

    def test_new_value_must_follow_del(self):
        fields = extract_fields("**Bold intro**\n<del>gone</del> plain text")
        assert fields.old_value == "gone"
        assert fields.new_value is None

    def test_only_first_bold_after_del(self):
        fields = extract_fields(SAMPLE_MESSAGE)
        assert fields.old_value == "Old price: $99.99"
        assert fields.new_value == "New price: $79.99"

    def test_multiline_del(self):
        fields = extract_fields("<del>line one\nline two</del>**after**")
        assert fields.old_value == "line one\nline two"
        assert fields.new_value == "after"


class TestBestEffort:
    def test_plain_text_yields_nothing(self):
        fields = extract_fields("The page changed.")
        assert fields.as_dict() == {
            "watch_url": None,
            "diff_url": None,
            "edit_url": None,
            "old_value": None,
            "new_value": None,
            "watcher_uuid": None,
        }

    def test_empty_and_none(self):
        assert extract_fields("").watch_url is None
        assert extract_fields(None).old_value is None

    def test_unclosed_markers(self):
        fields = extract_fields("<del>never closed **bold [Watch URL](")
        assert fields.old_value is None
        assert fields.new_value is None
        assert fields.watch_url is None
