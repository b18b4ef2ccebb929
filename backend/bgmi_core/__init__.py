"""Extraction, reconciliation and scoring of BGMI tournament standings."""

from .batch import BatchExhausted, ImageInput, run_batch
from .inference import InferenceClient, InferenceError, InferenceErrorKind
from .prompts import RecordKind
from .records import PointsRow, ResultRecord, SlotRecord
from .scoring import build_points_table
from .settings import Settings

__all__ = [
    "BatchExhausted",
    "ImageInput",
    "InferenceClient",
    "InferenceError",
    "InferenceErrorKind",
    "PointsRow",
    "RecordKind",
    "ResultRecord",
    "Settings",
    "SlotRecord",
    "build_points_table",
    "run_batch",
]
