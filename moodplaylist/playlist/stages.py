"""
Candidate stages for recommendation assembly.

Each stage feeds the shared CandidatePool from one source. Stages run in a
fixed order and only while the pool is below its floor; the assembler turns
StageDegraded/CatalogError raised here into a degraded StageOutcome.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple

from moodplaylist.errors import CatalogError, CatalogPermissionError, StageDegraded
from moodplaylist.library import LikedLibrary
from moodplaylist.logging_utils import truncate_list
from moodplaylist.models import ArtistId, AudioFeatures, RecommendationSeeds, Track, TrackId
from moodplaylist.mood import MoodProfile
from moodplaylist.spotify_client import CatalogClient

from .candidate_pool import CandidatePool
from .config import AssemblyConfig

logger = logging.getLogger(__name__)

OK = "ok"
DEGRADED = "degraded"
SKIPPED = "skipped"


@dataclass
class AssemblyContext:
    """Per-run state shared by the stages."""
    client: CatalogClient
    profile: MoodProfile
    config: AssemblyConfig
    library: LikedLibrary
    pool: CandidatePool
    liked_tracks: List[Track] = field(default_factory=list)
    artist_genres: Dict[ArtistId, Tuple[str, ...]] = field(default_factory=dict)
    features: Dict[TrackId, AudioFeatures] = field(default_factory=dict)


@dataclass(frozen=True)
class StageOutcome:
    stage: str
    status: str
    added: int
    pool_size: int
    reason: Optional[str] = None


def fetch_tracks_in_batches(client: CatalogClient, track_ids: Sequence[str], batch_size: int) -> List[Track]:
    """Fetch full track records in batches. Failed batches are skipped."""
    tracks: List[Track] = []
    ids = list(track_ids)
    for start in range(0, len(ids), batch_size):
        batch = ids[start:start + batch_size]
        try:
            payloads = client.tracks(batch)
        except CatalogError as e:
            logger.warning("Skipping %d tracks after lookup failure: %s", len(batch), e)
            continue
        for payload in payloads:
            track = Track.from_api(payload) if payload else None
            if track is not None:
                tracks.append(track)
    return tracks


def genre_matches(genre: str, keywords: Sequence[str]) -> bool:
    """Case-insensitive exact or substring match against mood keywords."""
    genre = genre.lower()
    return any(genre == kw or kw in genre for kw in keywords)


class CandidateStage(ABC):
    """One source of mood-matching candidates."""

    name: str = "stage"
    title: str = "Stage"

    def should_run(self, context: AssemblyContext) -> bool:
        return len(context.pool) < context.config.pool_floor

    def skip_reason(self, context: AssemblyContext) -> str:
        return f"pool already has {len(context.pool)} candidates"

    @abstractmethod
    def run(self, context: AssemblyContext) -> int:
        """Add candidates to context.pool and return how many were added.

        Raises:
            StageDegraded: the stage cannot contribute
            CatalogError: a catalog call the stage depends on failed
        """


class AudioFeatureStage(CandidateStage):
    """Liked tracks whose audio features fall inside the mood's bands."""

    name = "audio_features"
    title = "Audio-feature match"

    def run(self, context: AssemblyContext) -> int:
        client, cfg = context.client, context.config
        liked_ids = list(context.library.track_ids)

        try:
            client.audio_features(liked_ids[:cfg.audio_check_size])
        except CatalogPermissionError as e:
            raise StageDegraded(f"audio features access denied: {e}") from e
        except CatalogError as e:
            raise StageDegraded(f"audio features unavailable: {e}") from e

        bands = context.profile.thresholds
        matching = set()
        for start in range(0, len(liked_ids), cfg.audio_feature_batch_size):
            batch = liked_ids[start:start + cfg.audio_feature_batch_size]
            try:
                payloads = client.audio_features(batch)
            except CatalogError as e:
                logger.warning("Audio features for batch %d-%d failed: %s", start, start + len(batch), e)
                continue
            for track_id, payload in zip(batch, payloads):
                if not payload:
                    continue
                features = AudioFeatures.from_api(payload)
                context.features[track_id] = features
                if bands.matches(features):
                    matching.add(track_id)

        logger.info("%d liked songs match the '%s' mood by audio features", len(matching), context.profile.mood.value)
        candidates = [
            replace(t, features=context.features[t.id]) for t in context.liked_tracks if t.id in matching
        ]
        return context.pool.extend(candidates, source=self.name)


class GenreMatchStage(CandidateStage):
    """Liked tracks by artists tagged with one of the mood's genres."""

    name = "genre_match"
    title = "Genre match"

    def _genres_for(self, context: AssemblyContext, artist_id: ArtistId) -> Optional[Tuple[str, ...]]:
        if artist_id in context.artist_genres:
            return context.artist_genres[artist_id]
        try:
            payload = context.client.artist(artist_id)
        except CatalogError as e:
            logger.debug("Artist lookup failed for %s: %s", artist_id, e)
            return None
        genres = tuple(payload.get("genres") or ())
        context.artist_genres[artist_id] = genres
        return genres

    def _matches(self, context: AssemblyContext, track: Track, keywords: Sequence[str]) -> bool:
        for artist_id in track.artist_ids:
            genres = self._genres_for(context, artist_id)
            if genres and any(genre_matches(g, keywords) for g in genres):
                return True
        return False

    def run(self, context: AssemblyContext) -> int:
        keywords = [g.lower() for g in context.profile.genres]
        logger.debug("Mood genres: %s", truncate_list(keywords, max_items=5))
        pool = context.pool
        added = 0
        for track in context.liked_tracks:
            if len(pool) >= context.config.pool_ceiling:
                break
            if track.id in pool:
                continue
            if self._matches(context, track, keywords) and pool.offer(track, source=self.name):
                added += 1
        logger.info(
            "Added %d tracks by genre (%d artists looked up)", added, len(context.artist_genres)
        )
        return added


class MoodPlaylistStage(CandidateStage):
    """Liked tracks that appear in public mood-themed playlists."""

    name = "mood_playlists"
    title = "Mood-playlist mining"

    def run(self, context: AssemblyContext) -> int:
        client, cfg = context.client, context.config
        queries = context.profile.playlist_queries
        mined: List[Track] = []
        failed_queries = 0

        for query in queries:
            if len(mined) >= cfg.mined_track_limit:
                break
            try:
                playlists = client.search(query, search_type="playlist", limit=cfg.playlist_search_limit)
            except CatalogError as e:
                failed_queries += 1
                logger.warning("Playlist search for '%s' failed: %s", query, e)
                continue

            for playlist in playlists:
                if len(mined) >= cfg.mined_track_limit:
                    break
                playlist_id = playlist.get("id")
                if not playlist_id:
                    continue
                logger.debug("Checking playlist: %s", playlist.get("name", playlist_id))
                try:
                    items = client.playlist_tracks(playlist_id)
                except CatalogError as e:
                    logger.debug("Skipping playlist %s: %s", playlist_id, e)
                    continue
                mined.extend(t for t in (Track.from_api(p) for p in items) if t is not None)

        if queries and failed_queries == len(queries):
            raise StageDegraded("every playlist search failed")

        added = context.pool.extend(mined, source=self.name, limit=cfg.pool_ceiling)
        logger.info("Mined %d playlist tracks, %d are liked songs not yet pooled", len(mined), added)
        return added


class RecommendationStage(CandidateStage):
    """Catalog recommendations seeded from the user's favourites, filtered to liked songs."""

    name = "recommendations"
    title = "Catalog recommendations"

    def _top_items(self, fetch, limit: int, what: str) -> list:
        try:
            return fetch(limit=limit)
        except CatalogError as e:
            logger.info("Could not get top %s: %s", what, e)
            return []

    def build_seeds(self, context: AssemblyContext) -> RecommendationSeeds:
        cfg, library = context.config, context.library
        top_artists = self._top_items(context.client.top_artists, cfg.top_items_limit, "artists")
        top_tracks = self._top_items(context.client.top_tracks, cfg.top_items_limit, "tracks")

        seeds = RecommendationSeeds()
        for artist in top_artists[:cfg.max_seed_artists]:
            artist_id = artist.get("id")
            if artist_id and library.contains_artist(artist_id):
                seeds.artists.append(ArtistId(artist_id))
                logger.debug("Seed artist: %s", artist.get("name", artist_id))

        room = cfg.max_seeds - len(seeds)
        for track in top_tracks[:max(room, 0)]:
            track_id = track.get("id")
            if track_id and track_id in library:
                seeds.tracks.append(TrackId(track_id))
                logger.debug("Seed track: %s", track.get("name", track_id))

        room = cfg.max_seeds - len(seeds)
        if room > 0:
            seeds.genres = list(context.profile.seed_genres[:room])
            logger.debug("Seed genres: %s", truncate_list(seeds.genres))
        return seeds

    def run(self, context: AssemblyContext) -> int:
        cfg = context.config
        seeds = self.build_seeds(context)
        if not len(seeds):
            raise StageDegraded("no recommendation seeds available")

        logger.info(
            "Requesting recommendations with %d artist, %d track and %d genre seeds",
            len(seeds.artists), len(seeds.tracks), len(seeds.genres),
        )
        recommended = context.client.recommendations(
            seeds, context.profile.recommendation_attributes, limit=cfg.recommendation_limit
        )
        ids = [r["id"] for r in recommended if r.get("id")]
        tracks = fetch_tracks_in_batches(context.client, ids, cfg.track_batch_size)
        added = context.pool.extend(tracks, source=self.name)
        logger.info("%d of %d recommendations are liked songs not yet pooled", added, len(ids))
        return added


class SearchFallbackStage(CandidateStage):
    """Plain mood-keyword track search, only when nothing else produced candidates."""

    name = "search_fallback"
    title = "Search fallback"

    def should_run(self, context: AssemblyContext) -> bool:
        return len(context.pool) == 0

    def skip_reason(self, context: AssemblyContext) -> str:
        return "pool is not empty"

    def run(self, context: AssemblyContext) -> int:
        query = context.profile.search_query
        results = context.client.search(query, search_type="track", limit=context.config.search_limit)
        tracks = [t for t in (Track.from_api(p) for p in results) if t is not None]
        added = context.pool.extend(tracks, source=self.name)
        logger.info("Search '%s' returned %d tracks, %d are liked songs", query, len(tracks), added)
        return added


def default_stages() -> List[CandidateStage]:
    return [
        AudioFeatureStage(),
        GenreMatchStage(),
        MoodPlaylistStage(),
        RecommendationStage(),
        SearchFallbackStage(),
    ]
