from __future__ import annotations

from typing import Iterable, List

from .records import PointsRow


EXPORT_FILENAME = "bgmi_points_table.csv"
HEADERS = ["Slot No", "Team Members", "Finishes", "Position Points", "Total Points"]


def _quoted(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _cell(value) -> str:
    return "" if value is None else str(value)


def to_csv(rows: Iterable[PointsRow]) -> str:
    """Render the points table as comma separated text, in table order."""

    lines: List[str] = [",".join(HEADERS)]
    for row in rows:
        lines.append(
            ",".join(
                [
                    _cell(row.slot_no),
                    _quoted(", ".join(row.team_members)),
                    _cell(row.total_finishes),
                    _cell(row.position_points),
                    _cell(row.total_points),
                ]
            )
        )
    return "\n".join(lines)
