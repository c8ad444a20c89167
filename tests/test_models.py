"""Tests for footprint.core.models."""

from datetime import date, datetime, timezone

import pytest

from footprint.core.models import (
    CATEGORY_STYLES,
    Category,
    MediaItem,
    Message,
    category_style,
    clean_tags,
    encode_cover_image,
    parse_entry_date,
    parse_tags,
)

# =============================================================================
# Category Tests
# =============================================================================


class TestCategory:
    def test_values_match_persisted_strings(self):
        assert [c.value for c in Category] == ["Movie", "TV", "Book", "Music"]

    def test_every_category_has_a_style(self):
        assert set(CATEGORY_STYLES) == set(Category)

    def test_category_style_accepts_value(self):
        style = category_style("Book")
        assert style.label == "Book"
        assert style.localized_label == "书籍"


# =============================================================================
# MediaItem Tests
# =============================================================================


class TestMediaItem:
    def test_defaults(self):
        item = MediaItem()
        assert item.id == ""
        assert item.category == Category.MOVIE
        assert item.tags == []
        assert item.rating == 3
        assert item.cover_image is None

    def test_blank_has_fresh_id_and_today(self):
        first = MediaItem.blank(today=date(2024, 2, 29))
        second = MediaItem.blank(today=date(2024, 2, 29))

        assert first.id and second.id and first.id != second.id
        assert first.date == "2024-02-29"
        assert first.title == ""
        assert first.rating == 3

    def test_legacy_type_key_is_read_as_category(self):
        item = MediaItem.model_validate({"id": "x", "title": "Abbey Road", "type": "Music"})
        assert item.category == Category.MUSIC
        assert item.to_record()["category"] == "Music"

    def test_cover_image_uses_camel_case_on_disk(self):
        item = MediaItem.model_validate({"id": "x", "coverImage": "data:image/png;base64,AAAA"})
        assert item.cover_image == "data:image/png;base64,AAAA"

        record = item.to_record()
        assert record["coverImage"] == "data:image/png;base64,AAAA"
        assert "cover_image" not in record

    def test_missing_cover_is_omitted(self):
        assert "coverImage" not in MediaItem(id="x").to_record()

    def test_null_and_text_values_are_written_back_as_stored(self):
        record = {"id": "x", "title": "Tape", "date": None, "rating": "five"}

        written = MediaItem.model_validate(record).to_record()

        assert written["date"] is None
        assert written["rating"] == "five"

    def test_numeric_rating_keeps_its_type(self):
        assert MediaItem(rating=4).rating == 4
        assert MediaItem(rating=4.5).to_record()["rating"] == 4.5

    def test_unknown_keys_survive_a_round_trip(self):
        item = MediaItem.model_validate({"id": "x", "title": "T", "source": "import"})
        assert item.to_record()["source"] == "import"

    def test_invalid_category_rejected(self):
        with pytest.raises(ValueError):
            MediaItem.model_validate({"id": "x", "category": "Podcast"})

    def test_out_of_range_rating_is_stored_as_given(self):
        assert MediaItem(rating=9).rating == 9

    @pytest.mark.parametrize(
        "rating,expected",
        [(0, 1), (-3, 1), (1, 1), (3.6, 4), (5, 5), (12, 5), ("4", 4), ("five", 3), (None, 3)],
    )
    def test_display_rating_is_clamped(self, rating, expected):
        assert MediaItem(rating=rating).display_rating == expected

    def test_parsed_date(self):
        assert MediaItem(date="2023-11-15").parsed_date == date(2023, 11, 15)
        assert MediaItem(date="last summer").parsed_date is None

    def test_style_follows_category(self):
        assert MediaItem(category=Category.TV).style.icon == "tv"


# =============================================================================
# Helper Tests
# =============================================================================


class TestHelpers:
    def test_parse_tags_trims_pieces(self):
        assert parse_tags(" Sci-Fi, Thriller ,, Noir") == ["Sci-Fi", "Thriller", "", "Noir"]

    def test_clean_tags_drops_blank_and_keeps_duplicates(self):
        assert clean_tags(["a", " ", "", "b", "a"]) == ["a", "b", "a"]

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2024-03-10", date(2024, 3, 10)),
            ("2024-03-10T22:15:00Z", date(2024, 3, 10)),
            ("2024-03-10T22:15:00+02:00", date(2024, 3, 10)),
            ("2024-13-01", None),
            ("2024", date(2024, 1, 1)),
            ("2024-03", date(2024, 3, 1)),
            ("2024-13", None),
            ("0000", None),
            ("", None),
            ("yesterday", None),
            (None, None),
            (20240310, None),
        ],
    )
    def test_parse_entry_date(self, value, expected):
        assert parse_entry_date(value) == expected

    def test_encode_cover_image(self):
        assert encode_cover_image(b"\x89PNG", "image/png") == "data:image/png;base64,iVBORw=="


# =============================================================================
# Message Tests
# =============================================================================


class TestMessage:
    def test_create(self):
        now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        message = Message.create("Hello", now=now)

        assert message.id
        assert message.text == "Hello"
        assert message.timestamp == "2024-01-01T12:00:00+00:00"

    def test_to_record(self):
        message = Message(id="m1", text="Hi", timestamp="2024-01-01T00:00:00Z")
        assert message.to_record() == {"id": "m1", "text": "Hi", "timestamp": "2024-01-01T00:00:00Z"}
