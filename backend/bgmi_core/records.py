from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _coerce_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _coerce_members(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(member).strip() for member in value if member is not None]


def _coerce_finishes(value: Any) -> List[int]:
    if not isinstance(value, list):
        return []
    finishes = [_coerce_int(item) for item in value]
    return [item for item in finishes if item is not None]


@dataclass(frozen=True)
class SlotRecord:
    """A roster line read from a pre-match slot sheet."""

    slot_no: Optional[int]
    team_members: List[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SlotRecord":
        return cls(
            slot_no=_coerce_int(payload.get("slot_no")),
            team_members=_coerce_members(payload.get("team_members")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"slot_no": self.slot_no, "team_members": list(self.team_members)}


@dataclass(frozen=True)
class ResultRecord:
    """A team placement read from a post-match result sheet.

    ``total_finishes`` is taken as reported by the model when present and
    numeric, otherwise it is recomputed from ``finishes``. The points fields
    stay at zero until the record goes through scoring.
    """

    rank: Optional[int]
    team_members: List[str] = field(default_factory=list)
    finishes: List[int] = field(default_factory=list)
    total_finishes: int = 0
    position_points: int = 0
    total_points: int = 0

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ResultRecord":
        finishes = _coerce_finishes(payload.get("finishes"))
        reported = _coerce_int(payload.get("total_finishes"))
        return cls(
            rank=_coerce_int(payload.get("rank")),
            team_members=_coerce_members(payload.get("team_members")),
            finishes=finishes,
            total_finishes=reported if reported is not None else sum(finishes),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "team_members": list(self.team_members),
            "finishes": list(self.finishes),
            "total_finishes": self.total_finishes,
            "position_points": self.position_points,
            "total_points": self.total_points,
        }


@dataclass(frozen=True)
class PointsRow:
    slot_no: Optional[int]
    team_members: List[str]
    total_finishes: int
    position_points: int
    total_points: int
    rank: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slot_no": self.slot_no,
            "team_members": list(self.team_members),
            "total_finishes": self.total_finishes,
            "position_points": self.position_points,
            "total_points": self.total_points,
            "rank": self.rank,
        }
