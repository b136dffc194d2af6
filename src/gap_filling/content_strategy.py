"""
Backfill Content Strategies

The gap filler only guarantees the numeric baseline; the wording of the
items it creates comes from a pluggable strategy. The default strategy
writes clearly-marked placeholder text for authors to replace.
"""

from abc import ABC, abstractmethod

from src.schemas.content import CoverageCell, NewAssessmentSection, NewQuestionOption


class ContentStrategy(ABC):
    """Produces the text of backfilled practice items and assessments."""

    @abstractmethod
    def practice_prompt(self, cell: CoverageCell, position: int, target: int) -> str:
        ...

    @abstractmethod
    def practice_explanation(self, cell: CoverageCell) -> str:
        ...

    @abstractmethod
    def practice_options(self, cell: CoverageCell) -> list[NewQuestionOption]:
        """Exactly one correct option and three plausible wrong ones."""
        ...

    @abstractmethod
    def assessment_title(self, cell: CoverageCell) -> str:
        ...

    @abstractmethod
    def assessment_section(self, cell: CoverageCell) -> NewAssessmentSection:
        ...


class PlaceholderContentStrategy(ContentStrategy):
    """Low-fidelity placeholder text, tagged so audits can find it later."""

    def practice_prompt(self, cell: CoverageCell, position: int, target: int) -> str:
        return f"Practice for {cell.label} ({position}/{target})."

    def practice_explanation(self, cell: CoverageCell) -> str:
        return "Grade-aligned reasoning; reinforce core idea."

    def practice_options(self, cell: CoverageCell) -> list[NewQuestionOption]:
        return [
            NewQuestionOption(
                option_order=1,
                content="Correct answer (on-grade).",
                is_correct=True,
                feedback="Good job, this matches the lesson focus.",
            ),
            NewQuestionOption(
                option_order=2,
                content="Common misconception.",
                is_correct=False,
                feedback="Check your reasoning and re-read the prompt.",
            ),
            NewQuestionOption(
                option_order=3,
                content="Partially correct idea.",
                is_correct=False,
                feedback="Consider the units/steps carefully.",
            ),
            NewQuestionOption(
                option_order=4,
                content="Off-topic choice.",
                is_correct=False,
                feedback="Focus on the key concept from the module.",
            ),
        ]

    def assessment_title(self, cell: CoverageCell) -> str:
        return f"Unit Check: {cell.label}"

    def assessment_section(self, cell: CoverageCell) -> NewAssessmentSection:
        return NewAssessmentSection(
            section_order=1,
            title="Core Understanding",
            instructions="Answer to show mastery of this module.",
        )
