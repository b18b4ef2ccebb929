from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from .records import ResultRecord, SlotRecord


logger = logging.getLogger(__name__)

UNRANKED_KEY = "unranked"


def dedupe_slots(slots: Iterable[SlotRecord]) -> List[SlotRecord]:
    """Collapse slots by ``slot_no``; the first one seen wins."""

    seen: set[int] = set()
    unique: List[SlotRecord] = []
    for slot in slots:
        if slot.slot_no is None:
            logger.warning("Dropping slot without a slot number: %s", slot.team_members)
            continue
        if slot.slot_no in seen:
            continue
        seen.add(slot.slot_no)
        unique.append(slot)
    return unique


def key_results(results: Iterable[ResultRecord]) -> Dict[str, ResultRecord]:
    """Key results by rank, suffixing a counter when ranks collide across images."""

    keyed: Dict[str, ResultRecord] = {}
    for result in results:
        base = str(result.rank) if result.rank is not None else UNRANKED_KEY
        key = base
        counter = 0
        while key in keyed:
            counter += 1
            key = f"{base}_{counter}"
        keyed[key] = result
    return keyed
