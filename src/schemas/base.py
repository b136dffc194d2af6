"""
Base types and constants used across all schemas.

Shared enums and annotated types so the coverage reporter, the store
and the gap filler agree on the same vocabulary.
"""

from enum import Enum
from typing import Annotated

from pydantic import Field


# =============================================================================
# ENUMS
# =============================================================================

class CoverageStatus(str, Enum):
    """Readiness of a grade/subject cell."""
    READY = "ready"  # Meets every full-tier threshold
    BETA = "beta"    # Meets the relaxed tier only
    THIN = "thin"    # Some content, below the relaxed tier
    EMPTY = "empty"  # No modules or no lessons


class GeneratedBy(str, Enum):
    """Marker separating backfilled content from authored content."""
    GAP_FILLER = "gap_filler"
    # Written by the collaborator import and seeding tools
    FILL_GAPS_FROM_DASHBOARD = "fill_gaps_from_dashboard"
    FILL_PRIORITY_GAPS = "fill_priority_gaps"
    SEED_PLACEMENT_ASSESSMENT = "seed_placement_assessment"


class AssessmentPurpose(str, Enum):
    """Why an assessment exists."""
    BASELINE = "baseline"
    DIAGNOSTIC = "diagnostic"
    PLACEMENT = "placement"
    PRACTICE = "practice"
    EXIT_TICKET = "exit_ticket"


class StorageMode(str, Enum):
    """How an enrichment asset is delivered."""
    LINK = "link"
    EMBED = "embed"
    UPLOAD = "upload"

    @classmethod
    def external_modes(cls) -> frozenset["StorageMode"]:
        """Modes that count toward the external-resource baseline."""
        return frozenset({cls.LINK, cls.EMBED})


class DegradeMode(str, Enum):
    """What a gating lookup returns when its data source fails."""
    PASS_THROUGH = "pass_through"  # Return the unfiltered input
    EMPTY = "empty"                # Return nothing


# =============================================================================
# ANNOTATED TYPES
# =============================================================================

# Non-empty string
NonEmptyStr = Annotated[str, Field(min_length=1)]

# Counts are never negative
NonNegativeInt = Annotated[int, Field(ge=0)]
