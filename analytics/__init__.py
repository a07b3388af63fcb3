from .models import (
    Word, AttemptRecord, WordPerformance, TestSummary, ChapterStat,
    DetailedWordResponse, MigratedTest, MigrationReport
)
from .interfaces import Storage
from .locator import LegacyRecordLocator, LegacySnapshot
from .catalog import WordCatalogProjector
from .performance import PerformanceIndex
from .chapters import ChapterAggregator
from .trends import TrendBuilder
from .overview import OverviewSummarizer
from .migration import LegacyMigrator, needs_migration, legacy_data_report
from .service import AnalyticsService

__all__ = [
    'Word', 'AttemptRecord', 'WordPerformance', 'TestSummary', 'ChapterStat',
    'DetailedWordResponse', 'MigratedTest', 'MigrationReport',
    'Storage',
    'LegacyRecordLocator', 'LegacySnapshot',
    'WordCatalogProjector', 'PerformanceIndex',
    'ChapterAggregator', 'TrendBuilder', 'OverviewSummarizer',
    'LegacyMigrator', 'needs_migration', 'legacy_data_report',
    'AnalyticsService'
]
