"""CLI helper that scores result sheet photos and writes the points table CSV."""

from __future__ import annotations

import argparse
import logging
import mimetypes
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from bgmi_core import BatchExhausted, ImageInput, InferenceClient, Settings
from bgmi_core.export import EXPORT_FILENAME, to_csv
from bgmi_core.pipeline import analyze_results, analyze_slots
from bgmi_core.scoring import build_points_table, build_points_table_with_slots


def _load_images(paths: Sequence[Path]) -> List[ImageInput]:
    images: List[ImageInput] = []
    for path in paths:
        content_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
        images.append(ImageInput(filename=path.name, content=path.read_bytes(), content_type=content_type))
    return images


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("results", nargs="+", type=Path, help="result sheet images")
    parser.add_argument("--slots", nargs="*", type=Path, default=[], help="slot sheet images to join by player name")
    parser.add_argument("--output", type=Path, default=Path(EXPORT_FILENAME))
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    settings = Settings.from_env()
    client = InferenceClient(settings)

    try:
        results = analyze_results(_load_images(args.results), client, delay_seconds=settings.image_delay_seconds)
        if args.slots:
            slots = analyze_slots(_load_images(args.slots), client, delay_seconds=settings.image_delay_seconds)
            rows = build_points_table_with_slots(slots, results)
        else:
            rows = build_points_table(results)
    except BatchExhausted as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        for failure in exc.failures:
            print(f"  - {failure.filename}: {failure.error}", file=sys.stderr)
        return 1

    args.output.write_text(to_csv(rows) + "\n", encoding="utf-8")
    print(f"Wrote {len(rows)} rows to {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
