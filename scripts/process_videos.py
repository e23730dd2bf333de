#!/usr/bin/env python3
"""
Extract transcripts and metadata for an inventory of videos, one batch per run.

Every finished video is recorded in <output>/processing-progress.json right
away, so an interrupted or rate-limited run resumes where it stopped. Run
again until nothing remains.

Inventory format: {"videos": [{"url": ..., "title": ..., "description": ...}]}
(a bare list works too).

Usage:
    python scripts/process_videos.py inventory.json
    python scripts/process_videos.py inventory.json --batch-size 5 --output data/videos
    python scripts/process_videos.py inventory.json --reset
"""

import argparse
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from spoilerfree.cli import HANDLED_ERRORS, print_error, setup_logging
from spoilerfree.errors import ValidationError
from spoilerfree.progress import ProgressTracker, run_batch
from spoilerfree.store import dump_json, utc_now_iso
from spoilerfree.url_validator import extract_youtube_video_id
from spoilerfree.youtube import get_transcript, get_video_metadata, summarize_video


def load_inventory(path: Path) -> list[dict]:
    doc = json.loads(path.read_text(encoding="utf-8"))
    videos = doc.get("videos", []) if isinstance(doc, dict) else doc
    if not isinstance(videos, list):
        raise ValidationError(f"{path}: expected a list of videos")
    return [v for v in videos if v.get("url")]


def video_key(video: dict) -> str:
    return extract_youtube_video_id(video["url"]) or video["url"]


def make_processor(output_dir: Path):
    """Return process(video) writing data/<id>.json and transcripts/<id>.txt."""
    data_dir = output_dir / "data"
    transcripts_dir = output_dir / "transcripts"

    def process(video: dict) -> dict:
        video_id = video_key(video)
        metadata = get_video_metadata(video["url"])
        transcript = get_transcript(video["url"])

        record = {
            "url": video["url"],
            "videoId": video_id,
            "originalTitle": video.get("title"),
            "originalDescription": video.get("description"),
            "processedAt": utc_now_iso(),
            "metadata": summarize_video(metadata) if metadata else None,
            "transcriptSuccess": bool(transcript),
            "wordCount": len(transcript.split()) if transcript else 0,
            "transcriptLines": transcript.count("\n") + 1 if transcript else 0,
        }
        data_dir.mkdir(parents=True, exist_ok=True)
        (data_dir / f"video-{video_id}.json").write_text(dump_json(record), encoding="utf-8")
        if transcript:
            transcripts_dir.mkdir(parents=True, exist_ok=True)
            (transcripts_dir / f"{video_id}-transcript.txt").write_text(transcript, encoding="utf-8")
        return record

    return process


def main(argv=None):
    parser = argparse.ArgumentParser(description="Resumable transcript extraction for a video inventory")
    parser.add_argument("inventory", type=Path, help="Inventory JSON file")
    parser.add_argument("--batch-size", type=int, default=3, help="Videos per run (default: 3)")
    parser.add_argument("--delay", type=float, default=5.0, help="Seconds between videos")
    parser.add_argument("--output", type=Path, default=Path("data/videos"), help="Output directory")
    parser.add_argument("--reset", action="store_true", help="Forget previous progress first")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        videos = load_inventory(args.inventory)
        tracker = ProgressTracker(args.output / "processing-progress.json")
        if args.reset:
            tracker.clear()

        print(f"📚 Videos in inventory: {len(videos)}")
        print(f"✅ Previously processed: {len(tracker.processed_ids)}")
        if not tracker.remaining(videos, video_key):
            print("🎉 All videos have been processed!")
            return 0

        summary = run_batch(videos, video_key, make_processor(args.output), tracker,
                            batch_size=args.batch_size, delay=args.delay)
    except HANDLED_ERRORS as e:
        print_error(e)
        return 1

    words = sum(r["wordCount"] for r in summary["results"])
    print(f"\n📦 Batch #{summary['batchNumber']}: {summary['successful']}/{summary['itemsInBatch']} processed, "
          f"{summary['failed']} failed, {words:,} words")
    for error in summary["errors"]:
        print(f"  ✗ {error['id']}: {error['error']}")
    if summary["remaining"]:
        print(f"⏭️ {summary['remaining']} videos remaining. Run again to continue.")
    else:
        print("🎉 All videos have been processed!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
