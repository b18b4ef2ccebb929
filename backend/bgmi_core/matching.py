"""Approximate joining of slot rosters to result rosters by player name.

OCR of the same player often differs between the slot sheet and the result
sheet (clan tags, stray digits, ``x`` separators), so names are normalised
before comparison and pairs are scored on exact and partial overlaps.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Sequence

from .records import ResultRecord, SlotRecord


logger = logging.getLogger(__name__)

EXACT_MATCH_SCORE = 3
PARTIAL_MATCH_SCORE = 2
MIN_MATCH_SCORE = 3
MIN_NAME_LENGTH = 3


def normalize_name(name: str) -> str:
    normalized = re.sub(r"[^a-z0-9]", "", name.lower())
    normalized = normalized.replace("x", "")
    return re.sub(r"[0-9]", "", normalized)


def match_score(slot_members: Sequence[str], result_members: Sequence[str]) -> int:
    slot_names = [normalize_name(name) for name in slot_members]
    result_names = [normalize_name(name) for name in result_members]

    score = 0
    for slot_name in slot_names:
        for result_name in result_names:
            if slot_name == result_name and len(slot_name) >= MIN_NAME_LENGTH:
                score += EXACT_MATCH_SCORE
            elif result_name in slot_name and len(result_name) >= MIN_NAME_LENGTH:
                score += PARTIAL_MATCH_SCORE
            elif slot_name in result_name and len(slot_name) >= MIN_NAME_LENGTH:
                score += PARTIAL_MATCH_SCORE
    return score


@dataclass(frozen=True)
class SlotMatch:
    slot_index: int
    result_key: str
    score: int


def match_slots_to_results(
    slots: Sequence[SlotRecord],
    results: Dict[str, ResultRecord],
    min_score: int = MIN_MATCH_SCORE,
) -> Dict[int, SlotMatch]:
    """Greedy highest-score-first assignment of results to slots.

    Returns a mapping of slot index to its match. Each slot and each result is
    used at most once; pairs scoring below ``min_score`` are never assigned.
    """

    candidates: List[SlotMatch] = []
    for slot_index, slot in enumerate(slots):
        for result_key, result in results.items():
            score = match_score(slot.team_members, result.team_members)
            if score >= min_score:
                candidates.append(SlotMatch(slot_index=slot_index, result_key=result_key, score=score))

    # sort is stable: equal scores keep slot order, then result order
    candidates.sort(key=lambda match: match.score, reverse=True)

    assigned: Dict[int, SlotMatch] = {}
    used_results: set[str] = set()
    for match in candidates:
        if match.slot_index in assigned or match.result_key in used_results:
            continue
        assigned[match.slot_index] = match
        used_results.add(match.result_key)
        logger.debug(
            "Matched slot %s to result %s (score %s)",
            slots[match.slot_index].slot_no,
            match.result_key,
            match.score,
        )
    return assigned
