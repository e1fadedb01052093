"""
View Models for UI Rendering
Maps MatchRecords into presentation-ready cards. Every optional field may be
missing; the card then carries None and the UI omits that element.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from matchfeed.cache.core import utcnow
from matchfeed.models import MatchRecord

TBD = "TBD"


def format_date_label(match_date: datetime, now: datetime) -> str:
    """'Today', 'Tomorrow', or a short date such as 'Sat, Oct 18'."""
    day = match_date.date()
    today = now.date()
    if day == today:
        return "Today"
    if day == today + timedelta(days=1):
        return "Tomorrow"
    return f"{match_date:%a}, {match_date:%b} {match_date.day}"


def format_time_label(match_date: datetime) -> str:
    """12-hour clock, e.g. '3:00 PM'."""
    hour = match_date.hour % 12 or 12
    return f"{hour}:{match_date:%M} {match_date:%p}"


@dataclass
class MatchCardView:
    """View model for one match card."""
    id: str
    home_team: str
    away_team: str
    date_label: str
    time_label: str
    is_today: bool
    is_live: bool
    status: str
    home_team_crest: Optional[str] = None
    away_team_crest: Optional[str] = None
    score_display: Optional[str] = None
    minute_display: Optional[str] = None
    venue: Optional[str] = None
    matchday: Optional[int] = None
    competition: Optional[str] = None
    competition_emblem: Optional[str] = None

    @property
    def badge(self) -> Optional[str]:
        """LIVE wins over TODAY."""
        if self.is_live:
            return "LIVE"
        if self.is_today:
            return "TODAY"
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "homeTeamCrest": self.home_team_crest,
            "awayTeamCrest": self.away_team_crest,
            "date": self.date_label,
            "time": self.time_label,
            "isToday": self.is_today,
            "isLive": self.is_live,
            "badge": self.badge,
            "status": self.status,
            "score": self.score_display,
            "minute": self.minute_display,
            "venue": self.venue,
            "matchday": self.matchday,
            "competition": self.competition,
            "competitionEmblem": self.competition_emblem,
        }


def match_to_card_view(match: MatchRecord, now: Optional[datetime] = None) -> MatchCardView:
    """
    Build a card for match.

    Dates are compared in now's timezone, so pass a local-time `now` to get
    local 'Today'/'Tomorrow' labels.
    """
    now = now or utcnow()
    date_label = time_label = TBD
    is_today = False

    if match.date_time is not None:
        local = match.date_time.astimezone(now.tzinfo) if now.tzinfo else match.date_time
        date_label = format_date_label(local, now)
        time_label = format_time_label(local)
        is_today = local.date() == now.date()

    return MatchCardView(
        id=match.id,
        home_team=match.home_team,
        away_team=match.away_team,
        date_label=date_label,
        time_label=time_label,
        is_today=is_today,
        is_live=match.is_live,
        status=match.status,
        home_team_crest=match.home_team_crest,
        away_team_crest=match.away_team_crest,
        score_display=f"{match.score_home} - {match.score_away}" if match.has_score else None,
        minute_display=f"{match.minute}'" if match.minute is not None else None,
        venue=match.venue,
        matchday=match.matchday,
        competition=match.competition,
        competition_emblem=match.competition_emblem,
    )


def matches_to_view_models(matches: List[MatchRecord], now: Optional[datetime] = None) -> List[MatchCardView]:
    """Convert a match list to card view models."""
    now = now or utcnow()
    return [match_to_card_view(m, now) for m in matches]
