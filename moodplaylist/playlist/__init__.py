from .config import AssemblyConfig, default_assembly_config
from .candidate_pool import CandidatePool
from .assembler import AssemblyResult, RecommendationAssembler, assemble
from .stages import (
    AssemblyContext,
    AudioFeatureStage,
    CandidateStage,
    GenreMatchStage,
    MoodPlaylistStage,
    RecommendationStage,
    SearchFallbackStage,
    StageOutcome,
    default_stages,
)

from . import diversity

__all__ = [
    "AssemblyConfig",
    "default_assembly_config",
    "CandidatePool",
    "AssemblyResult",
    "RecommendationAssembler",
    "assemble",
    "AssemblyContext",
    "AudioFeatureStage",
    "CandidateStage",
    "GenreMatchStage",
    "MoodPlaylistStage",
    "RecommendationStage",
    "SearchFallbackStage",
    "StageOutcome",
    "default_stages",
    "diversity",
]
