"""Tests for the markdown calendar parser."""

from spoilerfree.calendar_parser import build_race_document, parse_calendar, parse_table_row, slugify


CALENDAR = """
# UCI Calendar 2026

Some intro text.

## Grand Tours

| Race | Start | End | Location | Category |
|------|-------|-----|----------|----------|
| Tour de France | 2026-07-04 | 2026-07-26 | France | 2.UWT |

## Full Calendar

| Race | Start | End | Location | Category |
|------|-------|-----|----------|----------|
| Strade Bianche | 2026-03-07 | 2026-03-07 | Italy | 1.UWT |
| Paris-Roubaix Femmes | 2026-04-11 | 2026-04-11 | France | 1.WWT |
| Paris-Roubaix | 2026-04-12 | 2026-04-12 | France | 1.UWT |
| Tour de France | 2026-07-04 | 2026-07-26 | France | 2.UWT |
| Broken Race | TBC | TBC | Nowhere | 1.1 |
| Impossible GP | 2026-02-30 | 2026-02-30 | Nowhere | 1.1 |

## Notes

| Not A Race | 2026-01-01 | 2026-01-01 | Ignored | 1.1 |
"""


class TestParseTableRow:
    def test_header_and_separator_skipped(self):
        assert parse_table_row("| Race | Start | End | Location | Category |") is None
        assert parse_table_row("|------|-------|-----|----------|----------|") is None

    def test_short_row_skipped(self):
        assert parse_table_row("| Race | Start |") is None

    def test_category_optional(self):
        row = parse_table_row("| Gent-Wevelgem | 2026-03-29 | 2026-03-29 | Belgium |")
        assert row.name == "Gent-Wevelgem"
        assert row.category == ""


class TestParseCalendar:
    def test_men_only_by_default(self):
        races = parse_calendar(CALENDAR, 2026)
        assert [r["id"] for r in races] == [
            "strade-bianche-2026",
            "paris-roubaix-2026",
            "tour-de-france-2026",
        ]
        assert all("gender" not in r for r in races)

    def test_include_women_tags_gender(self):
        races = parse_calendar(CALENDAR, 2026, include_women=True)
        genders = {r["id"]: r["gender"] for r in races}
        assert genders["paris-roubaix-femmes-2026"] == "women"
        assert genders["paris-roubaix-2026"] == "men"

    def test_record_fields(self):
        races = parse_calendar(CALENDAR, 2026)
        tdf = races[-1]
        assert tdf["raceDate"] == "2026-07-04"
        assert tdf["endDate"] == "2026-07-26"
        assert tdf["raceDay"] == "Saturday"
        assert tdf["rating"] == 5
        assert tdf["platform"] == "TBD"
        assert tdf["description"] == "2.UWT cycling race in France"
        # One-day races carry no endDate
        assert "endDate" not in races[0]

    def test_bad_dates_skipped(self, caplog):
        races = parse_calendar(CALENDAR, 2026)
        assert not any(r["name"] in ("Broken Race", "Impossible GP") for r in races)
        assert "Skipping row" in caplog.text

    def test_stops_at_next_heading(self):
        races = parse_calendar(CALENDAR, 2026)
        assert not any(r["name"] == "Not A Race" for r in races)

    def test_empty_markdown(self):
        assert parse_calendar("", 2026) == []


class TestHelpers:
    def test_slugify_strips_accents(self):
        assert slugify("Liège-Bastogne-Liège", 2026) == "liege-bastogne-liege-2026"
        assert slugify("Giro d'Italia", 2026) == "giro-d-italia-2026"

    def test_build_document(self):
        doc = build_race_document([], 2026)
        assert doc["event"] == {"name": "UCI Elite Cycling Calendar 2026", "location": "Worldwide", "year": 2026}
        assert doc["races"] == []
