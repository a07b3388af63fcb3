"""Chapter-level aggregation of test results.

Two modes are supported:

* word-centric: per-word attempt histories are available, so precision,
  hint usage and efficiency are computed exactly from every attempt;
* test-centric: only legacy aggregate summaries exist, so chapter counters
  come from each test's chapter breakdown and hints are distributed across
  chapters in proportion to the answers given in each one.

Proportional hint distribution is an approximation. A legacy summary only
records a test-wide hint total, so chapter hint figures in test-centric mode
are estimates and cannot be made more precise than that.
"""

from .catalog import WordCatalogProjector
from .config import HINT_PENALTY_PER_HINT, MAX_HINT_PENALTY, MIN_HINTED_EFFICIENCY
from .models import AttemptRecord, ChapterStat, TestSummary, Word
from .performance import PerformanceIndex
from .utils import parse_timestamp, percentage


def attempt_efficiency(attempt: AttemptRecord) -> float:
    """100 for an unaided correct answer, reduced per hint, 0 when wrong."""
    if not attempt.correct:
        return 0.0
    if not attempt.hinted:
        return 100.0
    penalty = min(attempt.hints_count * HINT_PENALTY_PER_HINT, MAX_HINT_PENALTY)
    return float(max(100 - penalty, MIN_HINTED_EFFICIENCY))


def word_efficiency(attempts: list[AttemptRecord]) -> float:
    if not attempts:
        return 0.0
    return sum(attempt_efficiency(a) for a in attempts) / len(attempts)


def allocate_hints(test: TestSummary) -> dict[str, float]:
    """Spread a test's hint total over its chapters by share of answers.

    Returns an empty dict when the test has no answers in any chapter.
    """
    total_answers = sum(stats.answers for stats in test.chapter_stats.values())
    if total_answers == 0:
        return {}
    return {
        chapter: test.hints_used * stats.answers / total_answers
        for chapter, stats in test.chapter_stats.items()
    }


def sort_key(stat: ChapterStat):
    """Tested chapters first by descending efficiency, then untested; ties by name."""
    if stat.has_tests:
        return (0, -stat.efficiency, stat.chapter)
    return (1, 0, stat.chapter)


class ChapterAggregator:
    """Aggregates correctness and hint usage per chapter.

    All methods are pure: identical inputs always give identical output.
    """

    def aggregate(self, words: list[Word], performance: PerformanceIndex = None,
                  tests: list[TestSummary] = None) -> dict[str, ChapterStat]:
        """Compute per-chapter stats, word-centric when attempt histories exist.

        Falls back to test-centric mode when only test summaries exist, and to
        zeroed, untested chapters when neither is available.
        """
        tests = tests or []
        if performance is not None and len(performance) > 0:
            stats = self.aggregate_by_word(words, performance)
            self._apply_test_dates(stats, tests)
            return stats
        if tests:
            return self.aggregate_by_test(words, tests)
        return self._base_stats(words, mode='word')

    def ordered(self, stats: dict[str, ChapterStat]) -> list[ChapterStat]:
        return sorted(stats.values(), key=sort_key)

    def aggregate_by_word(self, words: list[Word], performance: PerformanceIndex) -> dict[str, ChapterStat]:
        stats = self._base_stats(words, mode='word')
        for chapter, chapter_words in WordCatalogProjector.group_by_chapter(words).items():
            stat = stats[chapter]
            word_precisions = []
            word_efficiencies = []
            correct_with_hints = 0
            for word in chapter_words:
                attempts = performance.attempts(word.id)
                if not attempts:
                    continue
                correct = sum(1 for a in attempts if a.correct)
                stat.tested_words += 1
                stat.total_attempts += len(attempts)
                stat.correct_attempts += correct
                stat.total_hints += sum(a.hints_count for a in attempts)
                correct_with_hints += sum(1 for a in attempts if a.correct and a.hinted)
                word_precisions.append(correct / len(attempts) * 100)
                word_efficiencies.append(word_efficiency(attempts))

            stat.untested_words = stat.total_words - stat.tested_words
            if word_precisions:
                stat.precision = sum(word_precisions) / len(word_precisions)
                stat.efficiency = sum(word_efficiencies) / len(word_efficiencies)
            stat.hints_percentage = percentage(correct_with_hints, stat.correct_attempts)
            stat.untested_percentage = percentage(stat.untested_words, stat.total_words)
        return stats

    def aggregate_by_test(self, words: list[Word], tests: list[TestSummary]) -> dict[str, ChapterStat]:
        stats = self._base_stats(words, mode='test')
        chapter_word_ids = {
            chapter: {w.id for w in chapter_words}
            for chapter, chapter_words in WordCatalogProjector.group_by_chapter(words).items()
        }
        totals = {}
        for test in tests:
            hints = allocate_hints(test)
            moment = parse_timestamp(test.timestamp)
            named_ids = {str(t.get('wordId')) for t in test.word_times if isinstance(t, dict)}
            named_ids.update(test.wrong_word_ids)
            for chapter, breakdown in test.chapter_stats.items():
                if chapter not in stats:
                    stats[chapter] = ChapterStat(chapter, mode='test')
                stat = stats[chapter]
                entry = totals.setdefault(chapter, {'correct': 0, 'incorrect': 0,
                                                    'largest': 0, 'named': set()})
                stat.tests_performed += 1
                entry['correct'] += breakdown.correct_words
                entry['incorrect'] += breakdown.incorrect_words
                entry['largest'] = max(entry['largest'], breakdown.answers)
                entry['named'].update(named_ids & chapter_word_ids.get(chapter, set()))
                stat.total_hints += hints.get(chapter, 0.0)
                if moment and (stat.first_test_date is None or moment < stat.first_test_date):
                    stat.first_test_date = moment

        for chapter, stat in stats.items():
            entry = totals.get(chapter)
            if entry:
                answers = entry['correct'] + entry['incorrect']
                stat.total_attempts = answers
                stat.correct_attempts = entry['correct']
                stat.precision = percentage(entry['correct'], answers)
                stat.hints_percentage = percentage(stat.total_hints, answers)
                stat.efficiency = max(0.0, stat.precision - stat.hints_percentage)
                # Distinct words tested is unknown; a single test asks each word
                # once, so its largest chapter answer count is a lower bound.
                stat.tested_words = min(stat.total_words, max(entry['largest'], len(entry['named'])))
            stat.untested_words = stat.total_words - stat.tested_words
            stat.untested_percentage = percentage(stat.untested_words, stat.total_words)
        return stats

    def chapter_history(self, tests: list[TestSummary]) -> dict[str, list[dict]]:
        """Per-chapter entries of every test that touched the chapter, in input order."""
        history = {}
        running_hints = {}
        for index, test in enumerate(tests):
            moment = parse_timestamp(test.timestamp)
            if moment is None:
                continue
            hints = allocate_hints(test)
            for chapter, breakdown in test.chapter_stats.items():
                running_hints[chapter] = running_hints.get(chapter, 0.0) + hints.get(chapter, 0.0)
                history.setdefault(chapter, []).append({
                    'date': moment,
                    'timestamp': test.timestamp,
                    'accuracy': breakdown.percentage,
                    'correct': breakdown.correct_words,
                    'incorrect': breakdown.incorrect_words,
                    'hints': test.hints_used,
                    'estimatedHints': running_hints[chapter],
                    'testIndex': index
                })
        return history

    def _base_stats(self, words: list[Word], mode: str) -> dict[str, ChapterStat]:
        stats = {}
        for chapter, counts in WordCatalogProjector.chapter_counts(words).items():
            stat = ChapterStat(chapter, mode=mode)
            stat.total_words = counts['totalWords']
            stat.learned_words = counts['learnedWords']
            stat.difficult_words = counts['difficultWords']
            stat.untested_words = stat.total_words
            stat.completion_rate = percentage(stat.learned_words, stat.total_words)
            stat.difficulty_rate = percentage(stat.difficult_words, stat.total_words)
            stat.untested_percentage = 100.0 if stat.total_words else 0.0
            stats[chapter] = stat
        return stats

    def _apply_test_dates(self, stats: dict[str, ChapterStat], tests: list[TestSummary]) -> None:
        for test in tests:
            moment = parse_timestamp(test.timestamp)
            for chapter in test.chapter_stats:
                stat = stats.get(chapter)
                if stat is None:
                    continue
                stat.tests_performed += 1
                if moment and (stat.first_test_date is None or moment < stat.first_test_date):
                    stat.first_test_date = moment
