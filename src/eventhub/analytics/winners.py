from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from eventhub.utils.fields import load_json

logger = logging.getLogger(__name__)


def _names(values: Any) -> List[str]:
    if not isinstance(values, list):
        return []
    return [str(v).strip() for v in values if v is not None and str(v).strip()]


@dataclass(frozen=True)
class FlatWinners:
    """Winners stored as a plain list of names (teams and people mixed)."""

    names: List[str] = field(default_factory=list)

    def has_team(self, team_name: str) -> bool:
        return team_name in self.names

    def has_individual(self, name: str) -> bool:
        return name in self.names

    def to_json(self) -> List[str]:
        return list(self.names)


@dataclass(frozen=True)
class SplitWinners:
    """Winners stored as {"individual_winners": [...], "team_winners": [...]}."""

    individual: List[str] = field(default_factory=list)
    team: List[str] = field(default_factory=list)

    def has_team(self, team_name: str) -> bool:
        return team_name in self.team

    def has_individual(self, name: str) -> bool:
        return name in self.individual

    def to_json(self) -> Dict[str, List[str]]:
        return {"individual_winners": list(self.individual), "team_winners": list(self.team)}


Winners = Union[FlatWinners, SplitWinners]


def parse_winners(raw: Any) -> Optional[Winners]:
    """
    Strict variant of decode_winners: None when the value is neither a list
    nor a split object.
    """
    value = load_json(raw, "winners")
    if value is None:
        return FlatWinners()
    if isinstance(value, list):
        return FlatWinners(_names(value))
    if isinstance(value, dict):
        return SplitWinners(
            individual=_names(value.get("individual_winners")),
            team=_names(value.get("team_winners")),
        )
    return None


def decode_winners(raw: Any) -> Winners:
    """Decode a stored winners value once; unreadable values become no winners."""
    winners = parse_winners(raw)
    if winners is None:
        logger.warning("Unexpected winners shape: %s", type(raw).__name__)
        return FlatWinners()
    return winners


def match_win(winners: Winners, registration: Dict, display_name: Optional[str]) -> Optional[str]:
    """
    Return "team" / "individual" when the registration earned a win, else None.
    """
    if registration.get("registration_type") == "team":
        team_name = (registration.get("team_name") or "").strip()
        if team_name and winners.has_team(team_name):
            return "team"
        return None
    name = (display_name or "").strip()
    if name and winners.has_individual(name):
        return "individual"
    return None
