"""Global figures and rankings across chapters."""

from .config import STRUGGLING_CHAPTERS_COUNT, STRUGGLING_MIN_TESTED_WORDS, TOP_CHAPTERS_COUNT
from .models import ChapterStat


class OverviewSummarizer:
    """Reduces per-chapter stats to overview figures and rankings."""

    @staticmethod
    def summarize(chapter_stats: list[ChapterStat]) -> dict:
        tested = [c for c in chapter_stats if c.has_tests]
        best_efficiency = max((c.efficiency for c in tested), default=0)
        average_completion = (sum(c.completion_rate for c in chapter_stats) / len(chapter_stats)
                              if chapter_stats else 0)
        average_accuracy = sum(c.precision for c in tested) / len(tested) if tested else 0
        return {
            'totalChapters': len(chapter_stats),
            'testedChapters': len(tested),
            'bestEfficiency': round(best_efficiency),
            'averageCompletion': round(average_completion),
            'averageAccuracy': round(average_accuracy)
        }

    @staticmethod
    def top_performing(chapter_stats: list[ChapterStat], n: int = TOP_CHAPTERS_COUNT) -> list[ChapterStat]:
        tested = [c for c in chapter_stats if c.has_tests]
        return sorted(tested, key=lambda c: (-c.efficiency, c.chapter))[:n]

    @staticmethod
    def struggling(chapter_stats: list[ChapterStat], n: int = STRUGGLING_CHAPTERS_COUNT,
                   min_tested_words: int = STRUGGLING_MIN_TESTED_WORDS) -> list[ChapterStat]:
        """Lowest-efficiency chapters, ignoring ones with too few tested words."""
        eligible = [c for c in chapter_stats if c.has_tests and c.tested_words >= min_tested_words]
        return sorted(eligible, key=lambda c: (c.efficiency, c.chapter))[:n]
