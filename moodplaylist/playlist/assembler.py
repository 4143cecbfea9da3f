"""
Recommendation assembly: from a mood to a capped, shuffled list of liked tracks.

Pipeline:
  1. Build the liked library (fatal on failure)
  2. Hydrate liked tracks into full records
  3. Run candidate stages in order while the pool is below its floor
  4. Re-filter to the library, cap per artist, shuffle, truncate
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from moodplaylist.errors import CatalogError, InsufficientCandidates, StageDegraded
from moodplaylist.library import LikedLibrary, build_liked_library
from moodplaylist.logging_utils import RunSummary, stage_timer
from moodplaylist.models import Track
from moodplaylist.mood import Mood, profile_for, resolve_mood
from moodplaylist.spotify_client import CatalogClient

from .candidate_pool import CandidatePool
from .config import AssemblyConfig
from .diversity import finalize_tracks
from .stages import (
    DEGRADED,
    OK,
    SKIPPED,
    AssemblyContext,
    CandidateStage,
    StageOutcome,
    default_stages,
    fetch_tracks_in_batches,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssemblyResult:
    mood: Mood
    tracks: List[Track]
    outcomes: List[StageOutcome]
    library: LikedLibrary
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def track_ids(self) -> List[str]:
        return [t.id for t in self.tracks]

    def outcome(self, stage: str) -> Optional[StageOutcome]:
        for outcome in self.outcomes:
            if outcome.stage == stage:
                return outcome
        return None


class RecommendationAssembler:
    """
    Runs the candidate stages for one user and mood.

    Every track the assembler returns is in the user's liked library; no
    artist appears on more than `max_tracks_per_artist` of them.
    """

    def __init__(
        self,
        client: CatalogClient,
        config: Optional[AssemblyConfig] = None,
        stages: Optional[Sequence[CandidateStage]] = None,
    ):
        self.client = client
        self.config = config or AssemblyConfig()
        self.stages = list(stages) if stages is not None else default_stages()

    def _run_stage(self, stage: CandidateStage, context: AssemblyContext) -> StageOutcome:
        pool = context.pool
        before = len(pool)
        try:
            with stage_timer(stage.title, logger):
                added = stage.run(context)
        except (StageDegraded, CatalogError) as e:
            logger.warning("%s degraded: %s", stage.title, e)
            return StageOutcome(stage.name, DEGRADED, len(pool) - before, len(pool), str(e))
        logger.info("%s: +%d (pool %d)", stage.title, added, len(pool))
        return StageOutcome(stage.name, OK, added, len(pool))

    def assemble(self, mood: Union[Mood, str, None]) -> AssemblyResult:
        """
        Assemble a playlist's worth of liked tracks for `mood`.

        Raises:
            AuthFailure: the client is not authenticated
            LibraryFetchFailed: the liked library could not be read
            NoLikedSongs: the liked library is empty
            InsufficientCandidates: no stage produced a usable track
        """
        mood = resolve_mood(mood)
        profile = profile_for(mood)
        cfg = self.config
        summary = RunSummary("Playlist assembly", logger)
        logger.info("Assembling a '%s' playlist", mood.value)

        with stage_timer("Liked library", logger):
            library = build_liked_library(
                self.client, page_size=cfg.library_page_size, max_tracks=cfg.library_max_tracks
            )
        summary.add("liked_tracks", len(library))
        summary.add("liked_artists", len(library.artist_ids))

        with stage_timer("Track hydration", logger):
            liked_tracks = fetch_tracks_in_batches(self.client, library.track_ids, cfg.track_batch_size)
        # Preserve library order; hydration may drop records the catalog no longer serves
        hydrated = {t.id: t for t in liked_tracks}
        liked_tracks = [hydrated[tid] for tid in library.track_ids if tid in hydrated]
        summary.add("hydrated_tracks", len(liked_tracks))

        pool = CandidatePool(library)
        context = AssemblyContext(
            client=self.client,
            profile=profile,
            config=cfg,
            library=library,
            pool=pool,
            liked_tracks=liked_tracks,
        )

        outcomes: List[StageOutcome] = []
        for stage in self.stages:
            if not stage.should_run(context):
                reason = stage.skip_reason(context)
                logger.info("Skipping %s: %s", stage.title, reason)
                outcomes.append(StageOutcome(stage.name, SKIPPED, 0, len(pool), reason))
                continue
            outcome = self._run_stage(stage, context)
            outcomes.append(outcome)
            if outcome.status == DEGRADED:
                summary.increment("stages_degraded")
            summary.add(f"stage_{stage.name}", f"{outcome.status} +{outcome.added}")

        candidates = pool.tracks
        summary.add("pool_size", len(candidates))
        if not candidates:
            summary.log()
            raise InsufficientCandidates(
                f"Could not find enough liked songs matching the '{mood.value}' mood"
            )

        final = finalize_tracks(
            candidates,
            library,
            max_per_artist=cfg.max_tracks_per_artist,
            playlist_size=cfg.playlist_size,
            seed=cfg.shuffle_seed,
        )
        summary.add("artist_cap_dropped", final.stats["artist_cap_dropped"])
        summary.add("final_tracks", len(final.tracks))
        limiter = getattr(self.client, "rate_limiter", None)
        if limiter is not None:
            summary.add("catalog_calls", limiter.get_stats()["calls"])
        summary.log()

        if not final.tracks:
            raise InsufficientCandidates(
                f"No liked songs left for the '{mood.value}' mood after filtering"
            )

        stats = {**pool.stats(), **final.stats, "library_truncated": library.truncated}
        return AssemblyResult(
            mood=mood,
            tracks=final.tracks,
            outcomes=outcomes,
            library=library,
            stats=stats,
        )


def assemble(
    mood: Union[Mood, str, None],
    client: CatalogClient,
    config: Optional[AssemblyConfig] = None,
) -> List[Track]:
    """Convenience wrapper returning only the final tracks."""
    return RecommendationAssembler(client, config).assemble(mood).tracks
