"""TMDB movie / TV adapter.

Flow:
1. Split a trailing year off the title ("Dune (2021)" -> "Dune", 2021).
2. /search/movie; score the top 5 candidates with title_similarity and keep
   the best one at or above the similarity floor. Ties prefer a matching
   release year, then the search order.
3. Nothing acceptable -> /search/tv with the same scoring.
4. Details + credits for the winner (director, cast, runtime, genres).

Taking the first search hit blindly returns the wrong title's artwork
("Puppy Love" for "Wicked for Good"), hence the scoring.
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from journalmate.enrichment.exceptions import ProviderUnavailableError
from journalmate.enrichment.models import (
    ExtractedEntity,
    MovieResult,
    ProviderID,
    ProviderResponse,
)
from journalmate.enrichment.providers.base import ProviderAdapter, logger
from journalmate.enrichment.validation import TMDB_SIMILARITY_FLOOR, title_similarity


TMDB_BASE_URL = "https://api.themoviedb.org/3"
CANDIDATE_LIMIT = 5
CAST_LIMIT = 5

_YEAR_PATTERNS = [
    re.compile(r"\s*\((\d{4})\)\s*$"),      # Title (2025)
    re.compile(r"\s*\[(\d{4})\]\s*$"),      # Title [2025]
    re.compile(r"\s+-\s+(\d{4})\s*$"),      # Title - 2025
    re.compile(r"\s+(\d{4})\s*$"),          # Title 2025
]


def split_year(title: str) -> Tuple[str, Optional[int]]:
    """Strip a trailing release year from a title, if it looks like one."""
    for pattern in _YEAR_PATTERNS:
        match = pattern.search(title)
        if match:
            year = int(match.group(1))
            stripped = pattern.sub("", title).strip()
            if 1900 <= year <= 2030 and stripped:
                return stripped, year
    return title, None


def _year_of(date: Optional[str]) -> Optional[str]:
    return date[:4] if date and len(date) >= 4 else None


class TMDBAdapter(ProviderAdapter):
    provider = ProviderID.TMDB

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.tmdb_api_key)

    def image_url(self, path: Optional[str], size: str) -> Optional[str]:
        if not path:
            return None
        return f"{self.settings.tmdb_image_base_url.rstrip('/')}/{size}{path}"

    def _params(self, **extra: Any) -> Dict[str, Any]:
        params = {"api_key": self.settings.tmdb_api_key, "language": "en-US"}
        params.update(extra)
        return params

    # =========================================================================
    # Candidate scoring
    # =========================================================================

    @staticmethod
    def rank_candidates(
        query: str,
        candidates: List[Dict[str, Any]],
        title_key: str,
        date_key: str,
        year: Optional[int] = None,
    ) -> Optional[Tuple[Dict[str, Any], float]]:
        """Best candidate among the top few, or None if all fall below the floor.

        Args:
            query: Title searched for (year already removed)
            candidates: Raw TMDB search results, in API order
            title_key: "title" for movies, "name" for TV
            date_key: "release_date" for movies, "first_air_date" for TV
            year: Release year hint used to break ties

        Returns:
            (candidate, similarity) or None
        """
        best: Optional[Tuple[Tuple[float, int, int], Dict[str, Any], float]] = None
        for position, candidate in enumerate(candidates[:CANDIDATE_LIMIT]):
            titles = [candidate.get(title_key), candidate.get(f"original_{title_key}")]
            score = max(title_similarity(query, t) for t in titles if t) if any(titles) else 0.0
            year_match = 1 if year and _year_of(candidate.get(date_key)) == str(year) else 0
            key = (score, year_match, -position)
            if best is None or key > best[0]:
                best = (key, candidate, score)

        if best is None or best[2] < TMDB_SIMILARITY_FLOOR:
            return None
        return best[1], best[2]

    # =========================================================================
    # Lookup
    # =========================================================================

    async def _search(self, media_type: str, query: str, year: Optional[int]) -> Optional[Tuple[Dict[str, Any], float]]:
        data = await self.get_json(
            f"{TMDB_BASE_URL}/search/{media_type}",
            params=self._params(query=query, include_adult="false", page=1),
        )
        results = data.get("results") or []
        if media_type == "movie":
            return self.rank_candidates(query, results, "title", "release_date", year)
        return self.rank_candidates(query, results, "name", "first_air_date", year)

    async def _details(self, media_type: str, tmdb_id: int) -> Dict[str, Any]:
        """Details + credits; an empty dict when the call fails."""
        try:
            return await self.get_json(
                f"{TMDB_BASE_URL}/{media_type}/{tmdb_id}",
                params=self._params(append_to_response="credits"),
            )
        except ProviderUnavailableError as e:
            logger.warning(f"[tmdb] details lookup failed for {media_type} {tmdb_id}: {e}")
            return {}

    async def _lookup(self, entity: ExtractedEntity, category: Optional[str]) -> ProviderResponse:
        query, year = split_year(entity.title)
        year = year or entity.year

        media_type = "movie"
        match = await self._search("movie", query, year)
        if match is None:
            media_type = "tv"
            match = await self._search("tv", query, year)
        if match is None:
            logger.info(f"[tmdb] no candidate above {TMDB_SIMILARITY_FLOOR} for '{query}'")
            return self.no_result(f"no TMDB match for '{query}'")

        candidate, similarity = match
        details = await self._details(media_type, candidate["id"])
        result = self._build_result(media_type, candidate, details, similarity)
        logger.info(f"[tmdb] '{query}' -> '{result.title}' ({media_type}, similarity {similarity:.2f})")
        return ProviderResponse.success(self.provider, result)

    def _build_result(
        self,
        media_type: str,
        candidate: Dict[str, Any],
        details: Dict[str, Any],
        similarity: float,
    ) -> MovieResult:
        merged = {**candidate, **details}
        is_movie = media_type == "movie"
        credits = details.get("credits") or {}

        if is_movie:
            director = next(
                (c.get("name") for c in credits.get("crew") or [] if c.get("job") == "Director"),
                None,
            )
            runtime_minutes = details.get("runtime")
        else:
            creators = [c.get("name") for c in details.get("created_by") or [] if c.get("name")]
            director = ", ".join(creators) or None
            episode_times = details.get("episode_run_time") or []
            runtime_minutes = episode_times[0] if episode_times else None

        return MovieResult(
            media_type=media_type,
            tmdb_id=merged["id"],
            title=merged.get("title" if is_movie else "name") or "",
            overview=merged.get("overview") or None,
            release_year=_year_of(merged.get("release_date" if is_movie else "first_air_date")),
            poster_url=self.image_url(merged.get("poster_path"), self.settings.tmdb_poster_size),
            backdrop_url=self.image_url(merged.get("backdrop_path"), self.settings.tmdb_backdrop_size),
            rating=merged.get("vote_average"),
            genres=[g["name"] for g in details.get("genres") or [] if g.get("name")],
            director=director,
            cast=[c["name"] for c in (credits.get("cast") or [])[:CAST_LIMIT] if c.get("name")],
            runtime=f"{runtime_minutes} min" if runtime_minutes else None,
            similarity=similarity,
        )
