"""One-time migration of legacy aggregate test records into detailed responses.

Legacy tests only stored counters, a list of wrong words and sometimes a
per-word timing list. Where the timing list exists it is used as-is. Otherwise
the per-word responses are reconstructed from the word catalog and each word's
historical performance, and every reconstructed response is tagged as
estimated.

Reconstruction is deterministic unless a random source is injected: correct
words are the most likely candidates, and the test's recorded hint total is
given to the responses with the highest estimated hint probability. With an
injected ``random.Random`` each response's hint usage is sampled instead.

The migration does not deduplicate across runs. Running it twice against the
same legacy data writes the normalized tests twice, so callers must gate it
(see ``needs_migration``).
"""

import logging
import math
import random
import time
from datetime import datetime, timezone

from .config import (
    BACKUP_KEY_PREFIX, LAST_CALCULATED_KEY, OPTIMIZED_TESTS_KEY, OPTIMIZED_WORDS_KEY,
    INCORRECT_TIME_FACTOR, CORRECT_TIME_FACTOR, DEFAULT_INCORRECT_TIME_MS, DEFAULT_CORRECT_TIME_MS,
    INCORRECT_HINT_FACTOR, CORRECT_HINT_FACTOR,
    DEFAULT_INCORRECT_HINT_PROBABILITY, DEFAULT_CORRECT_HINT_PROBABILITY,
    BASE_CORRECTNESS_PROBABILITY, STREAK_BONUS, HIGH_HINT_RATE_PENALTY, LEARNED_BONUS,
    DIFFICULT_PENALTY, MIN_CORRECTNESS_PROBABILITY, MAX_CORRECTNESS_PROBABILITY,
    EASY_TEST_MAX_WORDS, HARD_TEST_MIN_WORDS,
    MISSING_DETAIL_PENALTY, COUNT_MISMATCH_PENALTY, MISSING_TIMING_PENALTY,
    HINT_MISMATCH_PENALTY, HINT_MISMATCH_TOLERANCE, LEGACY_KEY_CANDIDATES
)
from .interfaces import Storage
from .locator import LegacyRecordLocator, LegacySnapshot
from .models import (
    ITEM_ERRORS, DetailedWordResponse, MigratedTest, MigrationReport, QualityCheck, TestSummary, Word
)
from .performance import PerformanceIndex, WordPerformanceSummary
from .utils import clamp, split_sentence_field, timestamp_to_str

logger = logging.getLogger(__name__)

TEST_TYPES = ['complete', 'selective', 'difficult', 'learned', 'mixed', 'review', 'quick']
DIFFICULTIES = ['easy', 'medium', 'hard']


# ============================================================================
# Estimation heuristics
# ============================================================================

def estimate_word_difficulty(word: Word | None) -> str:
    if word is None:
        return 'medium'
    if word.difficult:
        return 'hard'
    if word.learned:
        return 'easy'
    if len(word.english) > 12:
        return 'hard'
    if len(word.english) < 6:
        return 'easy'
    return 'medium'


def estimate_time_ms(summary: WordPerformanceSummary | None, correct: bool) -> int:
    """Response time from the word's historical average, slower when wrong."""
    if summary is not None and summary.avg_time_ms:
        factor = CORRECT_TIME_FACTOR if correct else INCORRECT_TIME_FACTOR
        return round(summary.avg_time_ms * factor)
    return DEFAULT_CORRECT_TIME_MS if correct else DEFAULT_INCORRECT_TIME_MS


def hint_probability(summary: WordPerformanceSummary | None, correct: bool) -> float:
    """Chance the word was answered with a hint, from its historical hint rate."""
    if summary is not None and summary.hints_percentage is not None:
        factor = CORRECT_HINT_FACTOR if correct else INCORRECT_HINT_FACTOR
        return clamp(summary.hints_percentage / 100 * factor, 0.0, 1.0)
    return DEFAULT_CORRECT_HINT_PROBABILITY if correct else DEFAULT_INCORRECT_HINT_PROBABILITY


def correctness_probability(word: Word, summary: WordPerformanceSummary | None) -> float:
    """Estimated chance a word was answered correctly, clamped to [0.1, 0.9]."""
    probability = BASE_CORRECTNESS_PROBABILITY
    if summary is not None:
        if summary.accuracy is not None:
            probability = summary.accuracy / 100
        if summary.current_streak > 2:
            probability += STREAK_BONUS
        if summary.hints_percentage is not None and summary.hints_percentage > 50:
            probability -= HIGH_HINT_RATE_PENALTY
    if word.learned:
        probability += LEARNED_BONUS
    if word.difficult:
        probability -= DIFFICULT_PENALTY
    return clamp(probability, MIN_CORRECTNESS_PROBABILITY, MAX_CORRECTNESS_PROBABILITY)


def map_test_type(legacy_type) -> str:
    if isinstance(legacy_type, str) and legacy_type.lower() in TEST_TYPES:
        return legacy_type.lower()
    return 'complete'


def map_difficulty(legacy_difficulty, total_words: int = None) -> str:
    if isinstance(legacy_difficulty, str) and legacy_difficulty.lower() in DIFFICULTIES:
        return legacy_difficulty.lower()
    if not total_words:
        return 'medium'
    if total_words < EASY_TEST_MAX_WORDS:
        return 'easy'
    if total_words > HARD_TEST_MIN_WORDS:
        return 'hard'
    return 'medium'


def build_summaries(performance) -> dict[str, WordPerformanceSummary]:
    """Historical summaries from a legacy performance blob (dict or record list)."""
    if isinstance(performance, dict):
        return {str(word_id): WordPerformanceSummary.from_legacy(entry)
                for word_id, entry in performance.items()}
    index = PerformanceIndex.from_records(performance)
    return {word_id: index.summary(word_id) for word_id in index.word_ids()}


def migrate_word(data: dict, now: str) -> Word:
    """Normalize a legacy word; multi-valued sentence fields become lists."""
    word = Word.from_dict(data)
    word.sentence = split_sentence_field(data.get('sentence'))
    word.created_at = word.created_at or now
    word.updated_at = word.updated_at or now
    return word


# ============================================================================
# Migration
# ============================================================================

class MigrationResult:
    """Normalized words and tests of one run, with its report."""

    def __init__(self, words: list[Word], tests: list[MigratedTest], report: MigrationReport,
                 backup_key: str = None):
        self.words = words
        self.tests = tests
        self.report = report
        self.backup_key = backup_key

    def to_dict(self) -> dict:
        return {
            'words': [w.to_dict() for w in self.words],
            'tests': [t.to_dict() for t in self.tests],
            'report': self.report.to_dict(),
            'backupKey': self.backup_key
        }


class LegacyMigrator:
    """Converts legacy words and aggregate tests into normalized records."""

    def __init__(self, storage: Storage, rng: random.Random = None, clock=None,
                 locator: LegacyRecordLocator = None):
        self.storage = storage
        self.rng = rng
        self.clock = clock or time.time
        self.locator = locator or LegacyRecordLocator(storage)
        self.report = None

    def _now_iso(self) -> str:
        return datetime.fromtimestamp(self.clock(), tz=timezone.utc).isoformat()

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def migrate(self) -> MigrationResult:
        """Run the migration and persist its output.

        Malformed words or tests are recorded in the report and skipped. A
        failure to read the legacy data or to save the output is recorded,
        stamps the report's end time and is re-raised; the report stays
        available as ``self.report``.
        """
        report = MigrationReport(self._now_iso())
        self.report = report
        try:
            snapshot = self.locator.load_all()
            logger.info(f"Starting migration: {len(snapshot.words)} words, {len(snapshot.tests)} tests, "
                        f"performance for {len(snapshot.performance)} words")
            words, tests = self._convert(snapshot, report)
            backup_key = self._save(snapshot, words, tests)
        except Exception as e:
            report.end_time = self._now_iso()
            report.add_error('migration_failure', 'Global migration process', str(e))
            logger.error(f"Migration failed: {type(e).__name__}: {e}")
            raise

        report.end_time = self._now_iso()
        logger.info(f"Migration complete: words={report.words_processed}, tests={report.tests_processed}, "
                    f"errors={len(report.errors_encountered)}, warnings={len(report.warnings)}, "
                    f"quality={report.data_quality_score}")
        return MigrationResult(words, tests, report, backup_key)

    def dry_run(self) -> MigrationResult:
        """Convert and validate everything without writing to storage.

        Failures are recorded in the report instead of being raised.
        """
        report = MigrationReport(self._now_iso())
        self.report = report
        words, tests = [], []
        try:
            snapshot = self.locator.load_all()
            words, tests = self._convert(snapshot, report)
        except Exception as e:
            report.add_error('test_failure', 'Test migration', str(e))
            logger.error(f"Dry run failed: {type(e).__name__}: {e}")
        report.end_time = self._now_iso()
        return MigrationResult(words, tests, report)

    def _convert(self, snapshot: LegacySnapshot, report: MigrationReport) -> tuple[list[Word], list[MigratedTest]]:
        now = self._now_iso()
        words = []
        for index, raw in enumerate(snapshot.words):
            try:
                words.append(migrate_word(raw, now))
                report.words_processed += 1
            except ITEM_ERRORS as e:
                label = raw.get('english') if isinstance(raw, dict) else raw
                report.add_error('word_migration', f'Word {index}: {label}', str(e))
                logger.warning(f"Skipping legacy word {index}: {e}")

        summaries = build_summaries(snapshot.performance)
        tests = []
        tests_with_detail = 0
        for index, raw in enumerate(snapshot.tests):
            if isinstance(raw, dict) and raw.get('wordTimes'):
                tests_with_detail += 1
            try:
                legacy = TestSummary.from_dict(raw)
                migrated = self.migrate_test(legacy, words, summaries)
                quality = validate_test(legacy, migrated)
            except ITEM_ERRORS as e:
                test_id = raw.get('id') if isinstance(raw, dict) else None
                report.add_error('test_migration', f'Test {index}: ID {test_id}', str(e))
                logger.warning(f"Skipping legacy test {index}: {e}")
                continue
            migrated.has_estimations = quality.has_estimations
            migrated.quality_score = quality.accuracy_score
            if quality.has_estimations:
                report.estimations_used += 1
            report.warnings.extend(quality.warnings)
            tests.append(migrated)
            report.tests_processed += 1

        report.data_quality_score = data_quality_score(len(snapshot.tests), tests_with_detail, report)
        return words, tests

    def migrate_test(self, legacy: TestSummary, words: list[Word],
                     summaries: dict[str, WordPerformanceSummary]) -> MigratedTest:
        migrated = MigratedTest(f'migrated_{legacy.id}_{self._now_ms()}', legacy.id,
                                timestamp_to_str(legacy.timestamp))
        migrated.total_words = legacy.total_words
        migrated.correct_words = legacy.correct_words
        migrated.incorrect_words = legacy.incorrect_words
        migrated.total_time = round(legacy.total_time * 1000)
        migrated.avg_time_per_word = round(legacy.avg_time_per_word * 1000)
        migrated.percentage = legacy.percentage
        migrated.difficulty = map_difficulty(legacy.difficulty, legacy.total_words)
        migrated.hints_used = legacy.hints_used
        migrated.selected_chapters = list(legacy.selected_chapters)
        migrated.test_type = map_test_type(legacy.test_type)
        migrated.chapter_stats = dict(legacy.chapter_stats)

        if legacy.has_exact_detail:
            right, wrong = self._exact_responses(legacy, words)
        else:
            right, wrong = self._estimated_responses(legacy, words, summaries)
        migrated.right_words = right
        migrated.wrong_words = wrong
        return migrated

    def _exact_responses(self, legacy: TestSummary, words: list[Word]):
        by_id = {w.id: w for w in words}
        timestamp = timestamp_to_str(legacy.timestamp)
        right, wrong = [], []
        for entry in legacy.word_times:
            if entry.get('wordId') is None:
                raise ValueError(f"wordTimes entry without wordId in test {legacy.id}")
            word_id = str(entry['wordId'])
            response = DetailedWordResponse(
                word_id,
                int(entry.get('timeSpent') or 0),
                1 if entry.get('usedHint') else 0,
                estimate_word_difficulty(by_id.get(word_id)),
                bool(entry.get('isCorrect')),
                timestamp
            )
            (right if response.is_correct else wrong).append(response)
        return right, wrong

    def _estimated_responses(self, legacy: TestSummary, words: list[Word],
                             summaries: dict[str, WordPerformanceSummary]):
        by_id = {w.id: w for w in words}
        timestamp = timestamp_to_str(legacy.timestamp)

        wrong_ids = list(dict.fromkeys(legacy.wrong_word_ids))
        known_wrong = set(wrong_ids)
        eligible = set(legacy.selected_chapters) or set(legacy.chapter_stats)
        candidates = [
            w for w in words
            if w.id not in known_wrong
            and (not eligible or w.chapter in eligible or w.chapter_key in eligible)
        ]
        # Stable sort keeps catalog order among equally likely words
        ranked = sorted(candidates, key=lambda w: -correctness_probability(w, summaries.get(w.id)))
        correct_words = ranked[:legacy.correct_words]
        remaining = ranked[legacy.correct_words:]
        missing_wrong = max(0, legacy.incorrect_words - len(wrong_ids))
        extra_wrong = list(reversed(remaining[-missing_wrong:])) if missing_wrong else []

        def estimate(word_id: str, correct: bool) -> tuple[DetailedWordResponse, float]:
            summary = summaries.get(word_id)
            response = DetailedWordResponse(
                word_id,
                estimate_time_ms(summary, correct),
                0,
                estimate_word_difficulty(by_id.get(word_id)),
                correct,
                timestamp,
                estimated=True
            )
            return response, hint_probability(summary, correct)

        wrong = [estimate(word_id, False) for word_id in wrong_ids]
        wrong += [estimate(w.id, False) for w in extra_wrong]
        right = [estimate(w.id, True) for w in correct_words]
        self._assign_hints(wrong + right, legacy.hints_used)
        return [r for r, _ in right], [r for r, _ in wrong]

    def _assign_hints(self, estimates: list[tuple[DetailedWordResponse, float]], hints_total: int) -> None:
        if self.rng is not None:
            for response, probability in estimates:
                response.hints_used = 1 if self.rng.random() < probability else 0
            return
        # Deterministic: the recorded hint total goes to the likeliest responses
        order = sorted(range(len(estimates)), key=lambda i: -estimates[i][1])
        for i in order[:max(0, hints_total)]:
            estimates[i][0].hints_used = 1

    def _save(self, snapshot: LegacySnapshot, words: list[Word], tests: list[MigratedTest]) -> str:
        """Write the legacy backup, then the normalized data.

        If a write fails after the backup, the legacy keys are still untouched
        and the migration can be re-run.
        """
        now = self._now_iso()
        backup_key = f'{BACKUP_KEY_PREFIX}{self._now_ms()}'
        self.storage.set(backup_key, {**snapshot.to_dict(), 'backupDate': now})
        self.storage.set(OPTIMIZED_WORDS_KEY, [w.to_dict() for w in words])
        self.storage.set(OPTIMIZED_TESTS_KEY, [t.to_dict() for t in tests])
        self.storage.set(LAST_CALCULATED_KEY, now)
        logger.info(f"Migrated data saved. Legacy backup created: {backup_key}")
        return backup_key


# ============================================================================
# Validation and quality
# ============================================================================

def validate_test(legacy: TestSummary, migrated: MigratedTest) -> QualityCheck:
    check = QualityCheck()
    if not legacy.has_exact_detail:
        check.penalize(MISSING_DETAIL_PENALTY,
                       f'Test {legacy.id}: no per-word timing records, responses estimated',
                       estimation=True)

    responses = migrated.responses
    if len(responses) != legacy.total_words:
        check.penalize(COUNT_MISMATCH_PENALTY,
                       f'Test {legacy.id}: word count mismatch ({len(responses)} vs {legacy.total_words})')

    if not any(r.time_response > 0 for r in responses):
        check.penalize(MISSING_TIMING_PENALTY,
                       f'Test {legacy.id}: timing data estimated',
                       estimation=True)

    hints = sum(r.hints_used for r in responses)
    if abs(hints - legacy.hints_used) > HINT_MISMATCH_TOLERANCE:
        check.penalize(HINT_MISMATCH_PENALTY,
                       f'Test {legacy.id}: hint distribution estimated ({hints} vs {legacy.hints_used})',
                       estimation=True)
    return check


def data_quality_score(legacy_tests: int, tests_with_detail: int, report: MigrationReport) -> int:
    """0-100 confidence for a run, lowered by missing detail, errors and estimations."""
    if legacy_tests == 0:
        return 100
    detail_pct = tests_with_detail / legacy_tests * 100
    processed = report.words_processed + report.tests_processed
    errors = len(report.errors_encountered)
    if processed:
        error_rate = errors / processed * 100
    else:
        error_rate = 100 if errors else 0
    estimation_rate = report.estimations_used / legacy_tests * 100

    score = 100
    score -= (100 - detail_pct) * 0.5
    score -= error_rate * 2
    score -= estimation_rate * 0.3
    return max(0, math.floor(score + 0.5))


# ============================================================================
# Readiness and recovery
# ============================================================================

def needs_migration(storage: Storage) -> bool:
    """True when no normalized tests exist yet and legacy words or tests do."""
    if storage.get(OPTIMIZED_TESTS_KEY) is not None:
        return False
    return not LegacyRecordLocator(storage).load_all().is_empty


def legacy_data_report(storage: Storage) -> dict:
    """Describe the legacy data available for migration."""
    snapshot = LegacyRecordLocator(storage).load_all()
    detailed = sum(1 for t in snapshot.tests if isinstance(t, dict) and t.get('wordTimes'))
    tests_count = len(snapshot.tests)
    quality = detailed / tests_count * 100 if tests_count else 0

    recommendations = []
    if quality < 50:
        recommendations.append('Many tests lack per-word detail; their responses will be estimated')
    if tests_count == 0:
        recommendations.append('No tests found; only words will be migrated')
    if not snapshot.words:
        recommendations.append('No words found; check that the legacy data is present')
    if quality >= 80:
        recommendations.append('Legacy data quality is high; migration recommended')

    return {
        'wordsCount': len(snapshot.words),
        'testsCount': tests_count,
        'testsWithDetailedData': detailed,
        'estimatedQuality': round(quality),
        'keys': snapshot.keys,
        'recommendations': recommendations
    }


def list_backups(storage: Storage) -> list[str]:
    return storage.list_keys(BACKUP_KEY_PREFIX)


def restore_backup(storage: Storage, backup_key: str) -> list[str]:
    """Write each legacy blob of a backup back to the key it was read from.

    Returns the keys written.
    """
    backup = storage.get(backup_key)
    if not isinstance(backup, dict):
        raise KeyError(f"No legacy backup under '{backup_key}'")
    source_keys = backup.get('keys') or {}
    restored = []
    for category in ('words', 'tests', 'stats', 'performance'):
        value = backup.get(category)
        if not value:
            continue
        key = source_keys.get(category) or LEGACY_KEY_CANDIDATES[category][0]
        storage.set(key, value)
        restored.append(key)
    logger.info(f"Restored legacy data from {backup_key}: {restored}")
    return restored
