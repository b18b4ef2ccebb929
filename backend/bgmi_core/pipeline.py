from __future__ import annotations

import time
from typing import Callable, Dict, List, Sequence

from .batch import ImageInput, run_batch
from .inference import InferenceClient
from .prompts import RecordKind
from .reconcile import dedupe_slots, key_results
from .records import ResultRecord, SlotRecord


def analyze_slots(
    images: Sequence[ImageInput],
    client: InferenceClient,
    delay_seconds: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> List[SlotRecord]:
    records = run_batch(images, RecordKind.SLOT, client, delay_seconds=delay_seconds, sleep=sleep)
    return dedupe_slots(records)


def analyze_results(
    images: Sequence[ImageInput],
    client: InferenceClient,
    delay_seconds: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[str, ResultRecord]:
    records = run_batch(images, RecordKind.RESULT, client, delay_seconds=delay_seconds, sleep=sleep)
    return key_results(records)
