"""Instructions sent alongside each image to the vision model."""

from __future__ import annotations

from enum import Enum


class RecordKind(str, Enum):
    SLOT = "slot"
    RESULT = "result"


SLOT_PROMPT = """Analyze this BGMI tournament slot image and extract team information.
Return ONLY a JSON array with this exact format:
[
  {
    "slot_no": 4,
    "team_members": ["Player1", "Player2", "Player3", "Player4"]
  }
]

Extract all team slots and their members. Ensure the JSON is valid and complete."""


RESULT_PROMPT = """Analyze this BGMI tournament result image and extract ALL team result data.

The image layout is:
- LEFT SIDE: Team rank (1, 2, 3, etc.)
- CENTER: Team player names
- RIGHT SIDE: Individual finishes for each player

This image contains MULTIPLE teams. Extract ALL teams from the image.

Return ONLY a JSON array with this exact format:
[
  {
    "rank": 1,
    "team_members": ["Player1", "Player2", "Player3", "Player4"],
    "finishes": [3, 4, 4, 3],
    "total_finishes": 14
  },
  {
    "rank": 2,
    "team_members": ["Player5", "Player6", "Player7", "Player8"],
    "finishes": [2, 1, 3, 2],
    "total_finishes": 8
  }
]

Extract ALL teams from the image. Each team has a rank, player names, and individual finishes.
Calculate total finishes for each team by summing individual finishes."""


def prompt_for(kind: RecordKind) -> str:
    if kind is RecordKind.SLOT:
        return SLOT_PROMPT
    return RESULT_PROMPT
