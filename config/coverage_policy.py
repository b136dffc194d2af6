"""
Coverage Policy Tables

Static thresholds that decide when a grade/subject cell is "ready",
"beta" or "thin". Edit these tables to change launch policy; the
evaluation code reads them and never mutates them.
"""

# Full ("ready") tier defaults
DEFAULT_THRESHOLDS = {
    "min_lessons_per_strand": 3,
    "min_questions_per_lesson": 4,
    "min_total_lessons": 20,
    "min_modules": 5,
}

# Hard floors for the relaxed ("beta") tier.
# Each beta threshold is min(floor, ceil(full * factor)).
BETA_FLOORS = {
    "min_lessons_per_strand": 1,
    "min_questions_per_lesson": 2,
    "min_total_lessons": 8,
    "min_modules": 3,
}

BETA_FACTORS = {
    "min_lessons_per_strand": 0.5,
    "min_questions_per_lesson": 0.5,
    "min_total_lessons": 0.4,
    "min_modules": 0.5,
}

# Share of a cell's strands that must meet the per-strand lesson minimum
STRAND_COVERAGE_RATIO = 0.7

# Per-cell overrides keyed by (grade, subject). Unlisted fields fall back to defaults.
COVERAGE_OVERRIDES = {
    # K-2 content is simpler; fewer lessons needed
    ("K", "Mathematics"): {"min_total_lessons": 15, "min_lessons_per_strand": 2},
    ("1", "Mathematics"): {"min_total_lessons": 15, "min_lessons_per_strand": 2},
    ("2", "Mathematics"): {"min_total_lessons": 15, "min_lessons_per_strand": 2},
    ("K", "English Language Arts"): {"min_total_lessons": 12, "min_lessons_per_strand": 2},
    ("1", "English Language Arts"): {"min_total_lessons": 12, "min_lessons_per_strand": 2},
    ("2", "English Language Arts"): {"min_total_lessons": 12, "min_lessons_per_strand": 2},
    # High school science: fewer but deeper modules
    ("9", "Science"): {"min_modules": 3, "min_total_lessons": 15},
    ("10", "Science"): {"min_modules": 3, "min_total_lessons": 15},
    ("11", "Science"): {"min_modules": 3, "min_total_lessons": 15},
    ("12", "Science"): {"min_modules": 3, "min_total_lessons": 15},
}

# Grade/subject pairs enabled for the current launch.
# Content outside this set is never surfaced or backfilled.
IN_SCOPE_GRADE_SUBJECTS = frozenset(
    [(g, "Mathematics") for g in ("K", "1", "2", "3", "4", "5", "6", "7", "8")]
    + [(g, "English Language Arts") for g in ("K", "1", "2", "3", "4", "5", "6", "7", "8")]
    + [(g, "Science") for g in ("6", "7", "8")]
)

GRADE_ORDER = ("K", "1", "2", "3", "4", "5", "6", "7", "8", "9", "10", "11", "12")
