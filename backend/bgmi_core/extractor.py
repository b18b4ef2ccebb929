from __future__ import annotations

import json
import logging
from typing import List, Union

from .prompts import RecordKind
from .records import ResultRecord, SlotRecord


logger = logging.getLogger(__name__)

Record = Union[SlotRecord, ResultRecord]


def find_json_array(text: str) -> str | None:
    """Return the span from the first ``[`` to the last ``]``, if any."""

    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def extract_records(text: str, kind: RecordKind) -> List[Record]:
    """Parse model output into records; empty list when nothing usable is found."""

    snippet = find_json_array(text or "")
    if snippet is None:
        logger.info("No JSON array found in %s response", kind.value)
        return []

    try:
        payload = json.loads(snippet)
    except (ValueError, RecursionError) as exc:
        logger.warning("Malformed JSON array in %s response (%s)", kind.value, exc)
        return []

    if not isinstance(payload, list):
        return []

    factory = SlotRecord.from_payload if kind is RecordKind.SLOT else ResultRecord.from_payload
    records: List[Record] = []
    for item in payload:
        if not isinstance(item, dict):
            logger.warning("Skipping non-object %s item: %r", kind.value, item)
            continue
        records.append(factory(item))
    return records
