from __future__ import annotations

import argparse
from dataclasses import asdict, replace
import json
from pathlib import Path

from autostrm.models.entities import MediaItem
from autostrm.services.census import DirectoryCensus
from autostrm.services.classifier import classify, score
from autostrm.services.errors import PathEscapeError
from autostrm.services.layout import plan_layout
from autostrm.services.normalizer import normalize
from autostrm.settings import settings


def main() -> int:
    parser = argparse.ArgumentParser(description="Show where media names would be placed, without writing anything")
    parser.add_argument("names", nargs="+", help="Raw media file names")
    parser.add_argument("--base", default=None, help="Override BASE_STRM_PATH")
    parser.add_argument("--parent", type=int, default=0, help="Parent id to apply to every name")
    args = parser.parse_args()

    config = settings.snapshot()
    if args.base:
        config = replace(config, base_path=Path(args.base))

    census = DirectoryCensus()
    rows = []
    for name in args.names:
        item = MediaItem(url="", name=name, parent=args.parent)
        normalized = normalize(name)
        classification = classify(name) if config.enable_media_type_detection else None
        scores = score(name)
        row = {
            "name": name,
            "display_name": normalized.display_name,
            "year": normalized.year,
            "scores": {"movie": scores.movie, "tv": scores.tv},
            "classification": asdict(classification) if classification is not None else None,
        }
        try:
            plan = plan_layout(item, classification, normalized, config, census)
            row["target"] = str(plan.file_path)
        except PathEscapeError as exc:
            row["error"] = str(exc)
        rows.append(row)

    print(json.dumps(rows, ensure_ascii=False, indent=2))
    return 0 if all("error" not in r for r in rows) else 1


if __name__ == "__main__":
    raise SystemExit(main())
