from __future__ import annotations

import dataclasses
import logging
from typing import Dict, List, Mapping, Optional, Sequence

from .matching import match_slots_to_results
from .records import PointsRow, ResultRecord, SlotRecord


logger = logging.getLogger(__name__)

POSITION_POINTS: Dict[int, int] = {1: 10, 2: 6, 3: 5, 4: 4, 5: 3, 6: 2, 7: 1, 8: 1}


def position_points_for(rank: Optional[int]) -> int:
    if rank is None:
        return 0
    return POSITION_POINTS.get(rank, 0)


def score_result(record: ResultRecord) -> ResultRecord:
    """Return a copy of ``record`` with finishes and points filled in."""

    if record.finishes:
        total_finishes = sum(record.finishes)
    else:
        logger.warning("No finishes found for team at rank %s", record.rank)
        total_finishes = 0

    position_points = position_points_for(record.rank)
    return dataclasses.replace(
        record,
        total_finishes=total_finishes,
        position_points=position_points,
        total_points=total_finishes + position_points,
    )


def score_results(results: Mapping[str, ResultRecord]) -> Dict[str, ResultRecord]:
    return {key: score_result(record) for key, record in results.items()}


def _sort_key(row: PointsRow) -> tuple:
    unranked = row.rank is None
    return (-row.total_points, unranked, row.rank if row.rank is not None else 0)


def build_points_table(results: Mapping[str, ResultRecord]) -> List[PointsRow]:
    """Score every result and order the rows by total points.

    Equal totals are broken by the better (lower) rank, unranked teams last;
    any remaining tie keeps reconciliation order.
    """

    rows = [
        PointsRow(
            slot_no=None,
            team_members=list(scored.team_members),
            total_finishes=scored.total_finishes,
            position_points=scored.position_points,
            total_points=scored.total_points,
            rank=scored.rank,
        )
        for scored in score_results(results).values()
    ]
    rows.sort(key=_sort_key)
    return rows


def build_points_table_with_slots(
    slots: Sequence[SlotRecord],
    results: Mapping[str, ResultRecord],
) -> List[PointsRow]:
    """One row per slot, joined to results by approximate player names."""

    scored = score_results(results)
    matches = match_slots_to_results(slots, scored)

    rows: List[PointsRow] = []
    for index, slot in enumerate(slots):
        match = matches.get(index)
        if match is None:
            logger.info("No result matched slot %s", slot.slot_no)
            rows.append(
                PointsRow(
                    slot_no=slot.slot_no,
                    team_members=list(slot.team_members),
                    total_finishes=0,
                    position_points=0,
                    total_points=0,
                    rank=None,
                )
            )
            continue

        result = scored[match.result_key]
        rows.append(
            PointsRow(
                slot_no=slot.slot_no,
                team_members=list(slot.team_members),
                total_finishes=result.total_finishes,
                position_points=result.position_points,
                total_points=result.total_points,
                rank=result.rank,
            )
        )

    rows.sort(key=_sort_key)
    return rows
