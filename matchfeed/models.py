"""
Data models for fixtures and competitions.

These dataclasses are the canonical shape of upstream records. Parsing is
lenient: missing optional fields become None and the dependent UI element is
simply omitted.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any

from matchfeed.utils.helpers import (
    safe_str,
    safe_upper,
    optional_str,
    optional_int,
    parse_timestamp,
)

LIVE_STATUSES = ("LIVE", "IN_PLAY")


@dataclass
class CompetitionInfo:
    """Descriptive info for one competition."""
    id: str
    name: str
    country: Optional[str] = None
    emblem: Optional[str] = None

    @classmethod
    def from_api(cls, competition_id: str, raw: Optional[Dict[str, Any]]) -> "CompetitionInfo":
        raw = raw or {}
        return cls(
            id=competition_id,
            name=safe_str(raw.get("name"), default=competition_id),
            country=optional_str(raw.get("country")),
            emblem=optional_str(raw.get("emblem")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "country": self.country,
            "emblem": self.emblem,
        }


@dataclass
class MatchRecord:
    """A single fixture as returned by the matches endpoints."""
    id: str
    home_team: str
    away_team: str
    date_time: Optional[datetime]
    status: str
    home_team_crest: Optional[str] = None
    away_team_crest: Optional[str] = None
    score_home: Optional[int] = None
    score_away: Optional[int] = None
    minute: Optional[int] = None
    venue: Optional[str] = None
    matchday: Optional[int] = None
    competition: Optional[str] = None
    competition_emblem: Optional[str] = None

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "MatchRecord":
        score = raw.get("score")
        full_time = score.get("fullTime") if isinstance(score, dict) else None
        if not isinstance(full_time, dict):
            full_time = {}
        return cls(
            id=safe_str(raw.get("id")),
            home_team=safe_str(raw.get("homeTeam"), default="TBD"),
            away_team=safe_str(raw.get("awayTeam"), default="TBD"),
            date_time=parse_timestamp(raw.get("dateTime")),
            status=safe_upper(raw.get("status")),
            home_team_crest=optional_str(raw.get("homeTeamCrest")),
            away_team_crest=optional_str(raw.get("awayTeamCrest")),
            score_home=optional_int(full_time.get("home")),
            score_away=optional_int(full_time.get("away")),
            minute=optional_int(raw.get("minute")),
            venue=optional_str(raw.get("venue")),
            matchday=optional_int(raw.get("matchday")),
            competition=optional_str(raw.get("competition")),
            competition_emblem=optional_str(raw.get("competitionEmblem")),
        )

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_STATUSES

    @property
    def has_score(self) -> bool:
        return self.score_home is not None and self.score_away is not None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the upstream field names."""
        return {
            "id": self.id,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "homeTeamCrest": self.home_team_crest,
            "awayTeamCrest": self.away_team_crest,
            "dateTime": self.date_time.isoformat() if self.date_time else None,
            "status": self.status,
            "score": {"fullTime": {"home": self.score_home, "away": self.score_away}},
            "minute": self.minute,
            "venue": self.venue,
            "matchday": self.matchday,
            "competition": self.competition,
            "competitionEmblem": self.competition_emblem,
        }


@dataclass
class ResourcePayload:
    """
    The value of one resource.

    Match classes fill `matches` (and `competition` for fixtures); the
    catalog fills `competitions`.
    """
    matches: List[MatchRecord] = field(default_factory=list)
    competition: Optional[CompetitionInfo] = None
    competitions: Dict[str, CompetitionInfo] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.matches and not self.competitions
