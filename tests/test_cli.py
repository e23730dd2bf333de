"""End-to-end tests for the scripts/ entry points against a temp data dir."""

import json
import shutil
from pathlib import Path

import pytest

import add_gender
import add_race
import cleanup_duplicates
import discover_content
import generate_pages
import parse_calendar
import populate_race_riders
import process_videos
import race_quality
import tag_races
import update_race

FIXTURE = Path(__file__).parent / "fixtures" / "race-data.json"


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    shutil.copy(FIXTURE, path / "race-data.json")
    return path


def _races(data_dir):
    return json.loads((data_dir / "race-data.json").read_text())["races"]


def _ids(data_dir):
    return [r["id"] for r in _races(data_dir)]


class TestAddRace:
    def test_inserts_in_date_order(self, data_dir, tmp_path, capsys):
        race_file = tmp_path / "race.json"
        race_file.write_text(json.dumps({
            "id": "milano-sanremo-2026",
            "name": "Milano-Sanremo",
            "raceDate": "2026-03-21",
        }))

        code = add_race.main(["--file", str(race_file), "--data-dir", str(data_dir)])

        assert code == 0
        assert _ids(data_dir)[1] == "milano-sanremo-2026"
        added = _races(data_dir)[1]
        assert added["raceDay"] == "Saturday"
        assert added["url"] == "TBD"
        assert "✓ Milano-Sanremo" in capsys.readouterr().out

    def test_duplicate_id_fails_without_writing(self, data_dir, tmp_path, capsys):
        race_file = tmp_path / "race.json"
        race_file.write_text(json.dumps({
            "id": "paris-roubaix-2026",
            "name": "Paris-Roubaix",
            "raceDate": "2026-04-12",
        }))
        before = (data_dir / "race-data.json").read_text()

        code = add_race.main(["--file", str(race_file), "--data-dir", str(data_dir)])

        assert code == 1
        assert "✗ Error" in capsys.readouterr().err
        assert (data_dir / "race-data.json").read_text() == before

    def test_dry_run_leaves_file_alone(self, data_dir, tmp_path):
        race_file = tmp_path / "race.json"
        race_file.write_text(json.dumps({
            "id": "milano-sanremo-2026",
            "name": "Milano-Sanremo",
            "raceDate": "2026-03-21",
        }))

        code = add_race.main(["--file", str(race_file), "--dry-run", "--data-dir", str(data_dir)])

        assert code == 0
        assert "milano-sanremo-2026" not in _ids(data_dir)

    def test_invalid_json_reported(self, data_dir, tmp_path, capsys):
        race_file = tmp_path / "race.json"
        race_file.write_text("{not json")

        assert add_race.main(["--file", str(race_file), "--data-dir", str(data_dir)]) == 1
        assert "✗ Error" in capsys.readouterr().err


class TestUpdateRace:
    def test_set_values(self, data_dir):
        code = update_race.main([
            "--id", "paris-roubaix-2026",
            "--set", "rating=4",
            "--set", "platform=Discovery+",
            "--data-dir", str(data_dir),
        ])

        assert code == 0
        race = next(r for r in _races(data_dir) if r["id"] == "paris-roubaix-2026")
        assert race["rating"] == 4
        assert race["platform"] == "Discovery+"

    def test_broadcast_deep_merges(self, data_dir, tmp_path):
        updates = tmp_path / "updates.json"
        updates.write_text(json.dumps({
            "broadcast": {"geos": {"AU": {"primary": {"broadcaster": "SBS", "url": "https://www.sbs.com.au/sport/cycling"}}}},
        }))

        code = update_race.main([
            "--id", "paris-roubaix-2026", "--file", str(updates), "--data-dir", str(data_dir),
        ])

        assert code == 0
        race = next(r for r in _races(data_dir) if r["id"] == "paris-roubaix-2026")
        assert set(race["broadcast"]["geos"]) == {"US", "GB", "AU"}

    def test_id_change_rejected(self, data_dir, capsys):
        code = update_race.main([
            "--id", "paris-roubaix-2026", "--set", "id=other-race", "--data-dir", str(data_dir),
        ])

        assert code == 1
        assert "✗ Error" in capsys.readouterr().err
        assert "paris-roubaix-2026" in _ids(data_dir)

    def test_unknown_race(self, data_dir, capsys):
        code = update_race.main([
            "--id", "no-such-race", "--set", "rating=1", "--data-dir", str(data_dir),
        ])

        assert code == 1
        assert "no-such-race" in capsys.readouterr().err


class TestRaceQuality:
    def test_requires_a_selection(self, data_dir, capsys):
        assert race_quality.main(["--data-dir", str(data_dir)]) == 1
        assert "Must specify" in capsys.readouterr().err

    def test_failing_race_exits_nonzero(self, data_dir, capsys):
        code = race_quality.main([
            "--race", "paris-roubaix-2026", "--no-color", "--data-dir", str(data_dir),
        ])

        assert code == 1
        out = capsys.readouterr().out
        assert "paris-roubaix-2026" in out
        assert "root URL" in out

    def test_json_output(self, data_dir, capsys):
        race_quality.main([
            "--race", "paris-roubaix-2026", "--json", "--data-dir", str(data_dir),
        ])

        report = json.loads(capsys.readouterr().out)
        assert report["race"]["id"] == "paris-roubaix-2026"
        assert report["summary"]["status"] == "fail"

    def test_no_matching_races(self, data_dir, capsys):
        code = race_quality.main([
            "--from", "2027-01-01", "--data-dir", str(data_dir),
        ])

        assert code == 1
        assert "No races found" in capsys.readouterr().err


class TestDiscoverContent:
    STRADE_SUMMARY = "184 km through the white roads of Tuscany, finishing on the Piazza del Campo."

    def _fake_perplexity(self, monkeypatch, result):
        class FakePerplexity:
            def __init__(self, settings):
                pass

            def search_race_comprehensive(self, name, year):
                return result

        monkeypatch.setattr(discover_content, "PerplexityClient", FakePerplexity)

    def _strade_details(self, data_dir):
        return next(r for r in _races(data_dir) if r["id"] == "strade-bianche-2026")["raceDetails"]

    def test_empty_research_keeps_curated_details(self, data_dir, monkeypatch, capsys):
        self._fake_perplexity(monkeypatch, {"answer": None, "results": [], "citations": []})

        code = discover_content.main([
            "--race", "strade-bianche-2026", "--research", "--data-dir", str(data_dir),
        ])

        assert code == 0
        details = self._strade_details(data_dir)
        assert details["courseSummary"] == self.STRADE_SUMMARY
        assert details["sources"] == ["https://www.strade-bianche.it"]
        assert "found nothing" in capsys.readouterr().out

    def test_research_merges_summary_and_keeps_sectors(self, data_dir, monkeypatch):
        self._fake_perplexity(monkeypatch, {
            "answer": "Strade Bianche covers 215 km with 3,400m of climbing.",
            "results": [],
            "citations": [],
        })

        code = discover_content.main([
            "--race", "strade-bianche-2026", "--research", "--data-dir", str(data_dir),
        ])

        assert code == 0
        details = self._strade_details(data_dir)
        assert details["courseSummary"].startswith("Strade Bianche covers 215 km")
        assert details["distanceText"] == "215km"
        assert details["sources"] == ["https://www.strade-bianche.it"]
        assert details["keySectors"]


class TestParseCalendar:
    CALENDAR = """
## Full Calendar

| Race | Start | End | Location | Category |
|------|-------|-----|----------|----------|
| Omloop Het Nieuwsblad | 2026-02-28 | 2026-02-28 | Belgium | 1.UWT |
| Strade Bianche | 2026-03-07 | 2026-03-07 | Italy | 1.UWT |
"""

    def test_adds_only_new_races(self, data_dir, tmp_path):
        calendar = tmp_path / "calendar.md"
        calendar.write_text(self.CALENDAR)

        code = parse_calendar.main([str(calendar), "--year", "2026", "--data-dir", str(data_dir)])

        assert code == 0
        ids = _ids(data_dir)
        assert ids[0] == "omloop-het-nieuwsblad-2026"
        assert ids.count("strade-bianche-2026") == 1
        # Existing curated data survives
        strade = next(r for r in _races(data_dir) if r["id"] == "strade-bianche-2026")
        assert strade["platform"] == "FloBikes"

    def test_replace_overwrites(self, data_dir, tmp_path):
        calendar = tmp_path / "calendar.md"
        calendar.write_text(self.CALENDAR)

        code = parse_calendar.main([
            str(calendar), "--year", "2026", "--replace", "--data-dir", str(data_dir),
        ])

        assert code == 0
        assert _ids(data_dir) == ["omloop-het-nieuwsblad-2026", "strade-bianche-2026"]

    def test_missing_calendar_file(self, data_dir, tmp_path, capsys):
        code = parse_calendar.main([str(tmp_path / "missing.md"), "--data-dir", str(data_dir)])
        assert code == 1
        assert "✗ Error" in capsys.readouterr().err


class TestBatchScripts:
    def test_tag_races_writes_tags(self, data_dir):
        assert tag_races.main(["--data-dir", str(data_dir)]) == 0
        assert all("raceFormat" in r for r in _races(data_dir))

    def test_tag_races_dry_run(self, data_dir):
        assert tag_races.main(["--dry-run", "--data-dir", str(data_dir)]) == 0
        femmes = next(r for r in _races(data_dir) if r["id"] == "paris-roubaix-femmes-2026")
        assert "raceFormat" not in femmes

    def test_add_gender_keeps_counts(self, data_dir, capsys):
        assert add_gender.main(["--data-dir", str(data_dir)]) == 0
        genders = {r["id"]: r["gender"] for r in _races(data_dir)}
        assert genders["paris-roubaix-femmes-2026"] == "women"
        assert genders["paris-roubaix-2026"] == "men"

    def test_cleanup_duplicates(self, data_dir, capsys):
        path = data_dir / "race-data.json"
        doc = json.loads(path.read_text())
        copy = dict(doc["races"][0], id="strade-bianche-2026-copy")
        doc["races"].append(copy)
        path.write_text(json.dumps(doc))

        assert cleanup_duplicates.main(["--data-dir", str(data_dir)]) == 0
        assert "strade-bianche-2026-copy" not in _ids(data_dir)
        assert "1 duplicates removed" in capsys.readouterr().out


class TestGeneratePages:
    def test_writes_site(self, data_dir, tmp_path):
        site = tmp_path / "site"

        code = generate_pages.main(["--output", str(site), "--data-dir", str(data_dir)])

        assert code == 0
        assert (site / "index.html").exists()
        assert (site / "riders.html").exists()
        assert (site / "riders-women.html").exists()
        assert (site / "race-details" / "strade-bianche-2026.html").exists()
        assert (site / "race-details" / "tour-de-france-2026.html").exists()
        # No raceDetails, stages or broadcast geos
        assert not (site / "race-details" / "paris-roubaix-femmes-2026.html").exists()

    def test_only_index(self, data_dir, tmp_path):
        site = tmp_path / "site"

        code = generate_pages.main(["--only", "index", "--output", str(site), "--data-dir", str(data_dir)])

        assert code == 0
        assert (site / "index.html").exists()
        assert not (site / "riders.html").exists()

    def test_has_detail_page(self):
        assert generate_pages.has_detail_page({"stages": [{"stage": 1}]})
        assert not generate_pages.has_detail_page({"broadcast": {}})


class TestPopulateRaceRiders:
    def test_links_riders_and_saves_both_files(self, data_dir, capsys):
        (data_dir / "riders.json").write_text(json.dumps({"riders": [{
            "id": "tadej-pogacar", "slug": "tadej-pogacar", "name": "POGAČAR Tadej", "ranking": 1,
            "raceProgram": {"status": "announced", "races": [
                {"raceSlug": "strade-bianche", "raceName": "Strade Bianche", "raceDate": "2026-03-07"},
                {"raceSlug": "made-up-race", "raceName": "Made Up", "raceDate": "2026-05-01"},
            ]},
        }]}))

        code = populate_race_riders.main(["--data-dir", str(data_dir)])

        assert code == 0
        strade = next(r for r in _races(data_dir) if r["id"] == "strade-bianche-2026")
        assert [r["id"] for r in strade["topRiders"]] == ["tadej-pogacar"]
        riders = json.loads((data_dir / "riders.json").read_text())["riders"]
        assert riders[0]["raceProgram"]["races"][0]["raceId"] == "strade-bianche-2026"
        assert "made-up-race" in capsys.readouterr().out


class TestProcessVideos:
    def _inventory(self, tmp_path):
        path = tmp_path / "inventory.json"
        path.write_text(json.dumps({"videos": [
            {"url": "https://www.youtube.com/watch?v=aaaaaaaaaaa", "title": "Stage 1 highlights"},
            {"url": "https://www.youtube.com/watch?v=bbbbbbbbbbb", "title": "Stage 2 highlights"},
            {"title": "no url, skipped"},
        ]}))
        return path

    def test_batches_resume(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(process_videos, "get_video_metadata", lambda url: None)
        monkeypatch.setattr(process_videos, "get_transcript",
                            lambda url: "first line\nsecond line" if url.endswith("a") else None)
        inventory = self._inventory(tmp_path)
        output = tmp_path / "videos"
        args = [str(inventory), "--batch-size", "1", "--delay", "0", "--output", str(output)]

        assert process_videos.main(args) == 0
        assert (output / "transcripts" / "aaaaaaaaaaa-transcript.txt").exists()
        assert "1 videos remaining" in capsys.readouterr().out

        assert process_videos.main(args) == 0
        record = json.loads((output / "data" / "video-bbbbbbbbbbb.json").read_text())
        assert record["transcriptSuccess"] is False
        assert not (output / "transcripts" / "bbbbbbbbbbb-transcript.txt").exists()

        assert process_videos.main(args) == 0
        assert "All videos have been processed" in capsys.readouterr().out
