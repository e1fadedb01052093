"""
Client for the fixtures backend.

One network round-trip per fetch, no retries. Every failure is classified
and returned as an Err; nothing is raised to the caller.
"""
import logging
from typing import Optional, Dict, Any, Tuple

import requests
from dotenv import load_dotenv

from matchfeed.cache import ResourceClass, ResourceKey
from matchfeed.errors import (
    ApiError,
    Err,
    FetchResult,
    MatchfeedError,
    Ok,
    ParseError,
    TransportError,
)
from matchfeed.models import CompetitionInfo, MatchRecord, ResourcePayload
from matchfeed.utils.helpers import parse_timestamp
from config.settings import settings

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("api_client")

DEFAULT_API_ERROR = "Failed to fetch matches"


def _endpoint_for(key: ResourceKey) -> Tuple[str, Dict[str, Any]]:
    """Map a resource key to (path, query params)."""
    if key.resource_class == ResourceClass.CATALOG:
        return "competitions", {}
    if key.resource_class == ResourceClass.FIXTURES:
        return "matches", {"league": key.competition}
    if key.resource_class == ResourceClass.TODAY:
        return "matches/today", {}
    if key.resource_class == ResourceClass.LIVE:
        return "matches/live", {}
    raise ValueError(f"Unknown resource class: {key.resource_class}")


def _parse_matches(raw_matches: Any) -> list:
    """Parse match records, skipping entries that are not objects."""
    if not isinstance(raw_matches, list):
        return []
    matches = []
    for raw in raw_matches:
        if not isinstance(raw, dict):
            logger.debug(f"Skipping malformed match record: {raw!r}")
            continue
        matches.append(MatchRecord.from_api(raw))
    return matches


def _parse_catalog(envelope: Dict[str, Any]) -> ResourcePayload:
    raw_competitions = envelope.get("competitions")
    if not isinstance(raw_competitions, dict):
        raw_competitions = {}
    competitions = {
        competition_id: CompetitionInfo.from_api(competition_id, raw)
        for competition_id, raw in raw_competitions.items()
        if isinstance(raw, dict)
    }
    return ResourcePayload(competitions=competitions)


def _parse_fixtures(envelope: Dict[str, Any], competition_id: str) -> ResourcePayload:
    if not isinstance(envelope.get("data"), list):
        raise ApiError(envelope.get("message") or DEFAULT_API_ERROR)
    raw_competition = envelope.get("competition")
    competition = None
    if isinstance(raw_competition, dict):
        competition = CompetitionInfo.from_api(competition_id, raw_competition)
    return ResourcePayload(
        matches=_parse_matches(envelope["data"]),
        competition=competition,
    )


class ResourceFetcher:
    """
    Fetches one resource per call from the fixtures backend.

    Failure classification:
    - non-2xx status -> http_status
    - envelope with success=false -> api_error
    - connection error or unreadable body -> network
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout if timeout is not None else settings.request_timeout_seconds

    def fetch(self, key: ResourceKey) -> FetchResult:
        """Perform exactly one request for key."""
        try:
            envelope = self._request(key)
            return self._parse(key, envelope)
        except MatchfeedError as e:
            logger.warning(f"Fetch failed for {key} ({e.reason.value}): {e.message}")
            return Err.from_exception(e)

    def _request(self, key: ResourceKey) -> Dict[str, Any]:
        path, params = _endpoint_for(key)
        url = f"{self.base_url}/{path}"
        logger.info(f"GET {url} params={params}")

        try:
            response = self._session.get(url, params=params or None, timeout=self._timeout)
        except requests.RequestException as e:
            raise TransportError(f"network unavailable: {e}") from e

        if not response.ok:
            raise TransportError(
                f"HTTP error! status: {response.status_code}",
                status=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ParseError(f"invalid response body: {e}") from e

        if not isinstance(body, dict):
            raise ParseError("invalid response body: expected a JSON object")
        return body

    def _parse(self, key: ResourceKey, envelope: Dict[str, Any]) -> Ok:
        if not envelope.get("success"):
            raise ApiError(envelope.get("message") or DEFAULT_API_ERROR)

        if key.resource_class == ResourceClass.CATALOG:
            payload = _parse_catalog(envelope)
        elif key.resource_class == ResourceClass.FIXTURES:
            payload = _parse_fixtures(envelope, key.competition)
        else:
            payload = ResourcePayload(matches=_parse_matches(envelope.get("data")))

        return Ok(
            payload=payload,
            source_timestamp=parse_timestamp(envelope.get("timestamp")),
        )

    def close(self) -> None:
        self._session.close()
