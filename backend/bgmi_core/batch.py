from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Sequence

from .extractor import Record, extract_records
from .inference import InferenceClient, InferenceError, InferenceErrorKind
from .prompts import RecordKind, prompt_for


logger = logging.getLogger(__name__)

OVERLOAD_KINDS = {InferenceErrorKind.UNAVAILABLE, InferenceErrorKind.RATE_LIMITED}


@dataclass(frozen=True)
class ImageInput:
    filename: str
    content: bytes
    content_type: str = "image/jpeg"


@dataclass(frozen=True)
class ImageFailure:
    index: int
    filename: str
    error: InferenceError


@dataclass
class BatchReport:
    records: List[Record] = field(default_factory=list)
    failures: List[ImageFailure] = field(default_factory=list)
    images_processed: int = 0


class BatchExhausted(Exception):
    """Raised when no image in a batch produced any record."""

    def __init__(self, failures: Sequence[ImageFailure] = ()) -> None:
        self.failures = list(failures)
        super().__init__("No valid data extracted from images")

    @property
    def overloaded(self) -> bool:
        return bool(self.failures) and all(f.error.kind in OVERLOAD_KINDS for f in self.failures)


def run_batch_report(
    images: Sequence[ImageInput],
    kind: RecordKind,
    client: InferenceClient,
    *,
    delay_seconds: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> BatchReport:
    """Process images one at a time; a failed image never aborts the batch."""

    report = BatchReport()
    instruction = prompt_for(kind)

    for index, image in enumerate(images):
        logger.info("Processing %s image %s/%s: %s", kind.value, index + 1, len(images), image.filename)
        try:
            text = client.invoke(image.content, instruction, image.content_type)
        except InferenceError as error:
            logger.error("Failed to process image %s (%s): %s", index + 1, image.filename, error)
            report.failures.append(ImageFailure(index=index, filename=image.filename, error=error))
        else:
            records = extract_records(text, kind)
            if not records:
                logger.info("Image %s (%s) yielded no %s records", index + 1, image.filename, kind.value)
            report.records.extend(records)
        report.images_processed += 1

        if index < len(images) - 1:
            sleep(delay_seconds)

    if not report.records:
        raise BatchExhausted(report.failures)
    return report


def run_batch(
    images: Sequence[ImageInput],
    kind: RecordKind,
    client: InferenceClient,
    *,
    delay_seconds: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Record]:
    return run_batch_report(images, kind, client, delay_seconds=delay_seconds, sleep=sleep).records
