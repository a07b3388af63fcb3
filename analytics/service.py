"""Reads analytics inputs from storage and runs the chapter pipeline."""

import logging

from .catalog import load_words
from .chapters import ChapterAggregator
from .config import OPTIMIZED_TESTS_KEY, OPTIMIZED_WORDS_KEY
from .interfaces import Storage
from .locator import LegacyRecordLocator
from .models import ITEM_ERRORS, ChapterStat, MigratedTest, TestSummary, Word
from .overview import OverviewSummarizer
from .performance import PerformanceIndex
from .trends import TrendBuilder

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Chapter analytics over whatever data the store currently holds.

    Normalized (migrated) words and tests are preferred; legacy keys are the
    fallback. Nothing is written.
    """

    def __init__(self, storage: Storage):
        self.storage = storage
        self.locator = LegacyRecordLocator(storage)
        self.aggregator = ChapterAggregator()
        self.trends = TrendBuilder()

    def load_words(self) -> list[Word]:
        records = self.storage.get(OPTIMIZED_WORDS_KEY)
        if not records:
            _, records = self.locator.locate('words')
        return load_words(records)

    def load_performance(self) -> PerformanceIndex:
        _, records = self.locator.locate('performance')
        return PerformanceIndex.from_records(records)

    def load_tests(self) -> list[TestSummary]:
        """Test summaries from migrated records, else from legacy ones.

        Unreadable records are logged and skipped.
        """
        migrated = self.storage.get(OPTIMIZED_TESTS_KEY)
        if migrated:
            return self._read_tests(migrated, lambda t: MigratedTest.from_dict(t).to_summary())
        _, records = self.locator.locate('tests')
        return self._read_tests(records, TestSummary.from_dict)

    def _read_tests(self, records: list, convert) -> list[TestSummary]:
        tests = []
        for index, record in enumerate(records):
            try:
                tests.append(convert(record))
            except ITEM_ERRORS as e:
                logger.warning(f"Skipping unreadable test record {index}: {type(e).__name__}: {e}")
        return tests

    def chapter_stats(self) -> list[ChapterStat]:
        stats = self.aggregator.aggregate(self.load_words(), self.load_performance(), self.load_tests())
        return self.aggregator.ordered(stats)

    def overview(self) -> dict:
        stats = self.chapter_stats()
        return {
            'summary': OverviewSummarizer.summarize(stats),
            'topChapters': [c.to_dict() for c in OverviewSummarizer.top_performing(stats)],
            'strugglingChapters': [c.to_dict() for c in OverviewSummarizer.struggling(stats)]
        }

    def chapter_trend(self, chapter: str) -> list[dict] | None:
        """Trend points for a chapter, or None if no test touched it."""
        history = self.aggregator.chapter_history(self.load_tests())
        if chapter not in history:
            return None
        return self.trends.trend(history[chapter])
