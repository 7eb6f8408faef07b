"""CSV output helpers."""

from typing import Dict, Iterable, List
from pathlib import Path
import csv

from sharpcap.schema import PassRecord, Pick


def write_rows_csv(rows: List[Dict], output_path: str) -> None:
    """Write dict rows to CSV; first-row keys in order, then any later keys sorted."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if not rows:
        path.write_text("", encoding="utf-8")
        return

    fieldnames = list(rows[0].keys())
    extra_keys = set()
    for row in rows[1:]:
        extra_keys.update(key for key in row.keys() if key not in fieldnames)
    if extra_keys:
        fieldnames.extend(sorted(extra_keys))
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)


def write_picks_csv(picks: Iterable[Pick], output_path: str) -> None:
    write_rows_csv([pick.to_row() for pick in picks], output_path)


def write_passes_csv(passes: Iterable[PassRecord], output_path: str) -> None:
    write_rows_csv([record.to_row() for record in passes], output_path)
