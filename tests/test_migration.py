"""Unit tests for the legacy migration."""

import random
import unittest

from analytics.config import (
    LAST_CALCULATED_KEY, OPTIMIZED_TESTS_KEY, OPTIMIZED_WORDS_KEY
)
from analytics.migration import (
    LegacyMigrator, correctness_probability, data_quality_score, estimate_time_ms,
    estimate_word_difficulty, hint_probability, legacy_data_report, list_backups,
    map_difficulty, map_test_type, needs_migration, restore_backup
)
from analytics.models import MigrationReport, Word
from analytics.performance import WordPerformanceSummary
from analytics.service import AnalyticsService

from mocks import FixedClock, MockStorage, make_test, make_word

SCENARIO_TEST = {
    'id': 't1',
    'timestamp': '2024-01-10T18:00:00Z',
    'totalWords': 10,
    'correctWords': 7,
    'incorrectWords': 3,
    'hintsUsed': 2,
    'totalTime': 120,
    'avgTimePerWord': 12,
    'percentage': 70,
    'chapterStats': {'1': {'correctWords': 7, 'incorrectWords': 3, 'percentage': 70}}
}


def catalog() -> list[dict]:
    words = [make_word(f'w{i}', '1', english=f'word {i}') for i in range(1, 11)]
    words += [make_word('x1', '2', english='elsewhere'), make_word('x2', '2', english='other')]
    return words


def legacy_storage(tests: list = None, words: list = None, performance: dict = None) -> MockStorage:
    data = {
        'vocabularyWords': catalog() if words is None else words,
        'vocabulary_test_history': [SCENARIO_TEST] if tests is None else tests,
    }
    if performance is not None:
        data['wordPerformance'] = performance
    return MockStorage(data)


class AlwaysLow:
    """Random source whose every draw is 0."""

    def random(self) -> float:
        return 0.0


class TestEstimationHeuristics(unittest.TestCase):
    """Tests for the per-word estimation helpers."""

    def test_word_difficulty(self):
        self.assertEqual(estimate_word_difficulty(None), 'medium')
        self.assertEqual(estimate_word_difficulty(Word('w', 'cat', 'gatto', difficult=True)), 'hard')
        self.assertEqual(estimate_word_difficulty(Word('w', 'responsibility', 'x', learned=True)), 'easy')
        self.assertEqual(estimate_word_difficulty(Word('w', 'responsibility', 'x')), 'hard')
        self.assertEqual(estimate_word_difficulty(Word('w', 'cat', 'gatto')), 'easy')
        self.assertEqual(estimate_word_difficulty(Word('w', 'window', 'finestra')), 'medium')

    def test_time_estimate(self):
        self.assertEqual(estimate_time_ms(None, True), 8000)
        self.assertEqual(estimate_time_ms(None, False), 15000)
        summary = WordPerformanceSummary.from_legacy({'avgTime': 10})
        self.assertEqual(estimate_time_ms(summary, True), 9000)
        self.assertEqual(estimate_time_ms(summary, False), 14000)

    def test_hint_probability(self):
        self.assertEqual(hint_probability(None, True), 0.0)
        self.assertEqual(hint_probability(None, False), 0.4)
        summary = WordPerformanceSummary.from_legacy({'hintsPercentage': 80})
        self.assertEqual(hint_probability(summary, False), 1.0)
        self.assertAlmostEqual(hint_probability(summary, True), 0.56)

    def test_correctness_probability(self):
        plain = Word('w', 'cat', 'gatto')
        self.assertEqual(correctness_probability(plain, None), 0.5)
        self.assertAlmostEqual(correctness_probability(Word('w', 'cat', 'gatto', difficult=True), None), 0.3)

        strong = WordPerformanceSummary.from_legacy({'accuracy': 80, 'currentStreak': 3})
        self.assertEqual(correctness_probability(Word('w', 'cat', 'gatto', learned=True), strong), 0.9)

        weak = WordPerformanceSummary.from_legacy({'accuracy': 0, 'hintsPercentage': 70})
        self.assertEqual(correctness_probability(plain, weak), 0.1)

    def test_test_type_and_difficulty_mapping(self):
        self.assertEqual(map_test_type('REVIEW'), 'review')
        self.assertEqual(map_test_type('weird'), 'complete')
        self.assertEqual(map_test_type(None), 'complete')
        self.assertEqual(map_difficulty('Hard', 5), 'hard')
        self.assertEqual(map_difficulty(None, 10), 'easy')
        self.assertEqual(map_difficulty(None, 20), 'medium')
        self.assertEqual(map_difficulty(None, 31), 'hard')
        self.assertEqual(map_difficulty(None, None), 'medium')

    def test_quality_score_without_tests(self):
        self.assertEqual(data_quality_score(0, 0, MigrationReport('now')), 100)


class TestLegacyMigrator(unittest.TestCase):
    """Tests for LegacyMigrator.migrate."""

    def migrate(self, storage: MockStorage, **kwargs):
        return LegacyMigrator(storage, clock=FixedClock(), **kwargs).migrate()

    def test_estimated_scenario(self):
        storage = legacy_storage()
        result = self.migrate(storage)

        self.assertEqual(len(result.tests), 1)
        test = result.tests[0]
        self.assertEqual(len(test.responses), 10)
        self.assertEqual(len(test.right_words), 7)
        self.assertEqual(len(test.wrong_words), 3)
        self.assertTrue(test.has_estimations)
        self.assertTrue(all(r.estimated for r in test.responses))
        self.assertEqual(result.report.estimations_used, 1)
        self.assertEqual(test.quality_score, 80)

        ids = {r.word_id for r in test.responses}
        self.assertEqual(len(ids), 10)
        self.assertFalse(ids & {'x1', 'x2'})

    def test_estimated_hints_match_recorded_total(self):
        test = self.migrate(legacy_storage()).tests[0]

        self.assertEqual(sum(r.hints_used for r in test.responses), 2)
        self.assertEqual(sum(r.hints_used for r in test.right_words), 0)

    def test_estimated_times(self):
        test = self.migrate(legacy_storage()).tests[0]

        self.assertEqual({r.time_response for r in test.right_words}, {8000})
        self.assertEqual({r.time_response for r in test.wrong_words}, {15000})

    def test_known_wrong_words_are_kept(self):
        legacy = dict(SCENARIO_TEST, wrongWords=[make_word('w3', '1', english='word 3')])
        test = self.migrate(legacy_storage([legacy])).tests[0]

        wrong = [r.word_id for r in test.wrong_words]
        self.assertEqual(wrong[0], 'w3')
        self.assertEqual(len(wrong), 3)
        self.assertNotIn('w3', [r.word_id for r in test.right_words])

    def test_least_likely_words_fill_incorrect_slots(self):
        storage = legacy_storage(performance={'w1': {'accuracy': 0}})
        test = self.migrate(storage).tests[0]

        self.assertIn('w1', [r.word_id for r in test.wrong_words])

    def test_exact_word_times_used_verbatim(self):
        legacy = make_test('t9', '2024-01-12T08:00:00Z', {'1': {'correctWords': 1, 'incorrectWords': 1}},
                           hints_used=1, wordTimes=[
                               {'wordId': 'w1', 'timeSpent': 4000, 'isCorrect': True, 'usedHint': False},
                               {'wordId': 'w2', 'timeSpent': 9000, 'isCorrect': False, 'usedHint': True},
                           ])
        result = self.migrate(legacy_storage([legacy]))
        test = result.tests[0]

        self.assertEqual([r.word_id for r in test.right_words], ['w1'])
        self.assertEqual([r.word_id for r in test.wrong_words], ['w2'])
        self.assertEqual(test.right_words[0].time_response, 4000)
        self.assertEqual(test.wrong_words[0].hints_used, 1)
        self.assertFalse(any(r.estimated for r in test.responses))
        self.assertFalse(test.has_estimations)
        self.assertEqual(test.quality_score, 100)
        self.assertEqual(result.report.estimations_used, 0)

    def test_migrated_test_fields(self):
        result = self.migrate(legacy_storage())
        stored = result.tests[0].to_dict()

        self.assertEqual(stored['id'], 'migrated_t1_1700000000000')
        self.assertEqual(stored['legacyId'], 't1')
        self.assertEqual(stored['totalTime'], 120000)
        self.assertEqual(stored['avgTimePerWord'], 12000)
        self.assertEqual(stored['difficulty'], 'easy')
        self.assertEqual(stored['testType'], 'complete')
        self.assertEqual(stored['version'], '3.0.0')
        self.assertEqual(stored['timestamp'], '2024-01-10T18:00:00+00:00')

    def test_sentence_fields_are_split(self):
        words = catalog()
        words[0]['sentence'] = 'The dog barks.|The dog sleeps.'
        words[1]['sentence'] = 'One sentence.'
        result = self.migrate(legacy_storage(words=words))

        self.assertEqual(result.words[0].sentence, ['The dog barks.', 'The dog sleeps.'])
        self.assertEqual(result.words[1].sentence, 'One sentence.')

    def test_malformed_items_are_recorded_and_skipped(self):
        words = catalog() + [{'english': 'no id'}]
        bad_detail = make_test('t5', '2024-01-11T08:00:00Z', {'1': {'correctWords': 1, 'incorrectWords': 0}},
                               wordTimes=[{'timeSpent': 3000, 'isCorrect': True}])
        storage = legacy_storage(tests=[SCENARIO_TEST, 'garbage', bad_detail], words=words)

        report = self.migrate(storage).report

        self.assertEqual(report.words_processed, 12)
        self.assertEqual(report.tests_processed, 1)
        types = [e['type'] for e in report.errors_encountered]
        self.assertEqual(types, ['word_migration', 'test_migration', 'test_migration'])
        self.assertIn('ID t5', report.errors_encountered[2]['item'])

    def test_backup_written_before_normalized_data(self):
        storage = legacy_storage()
        result = self.migrate(storage)

        self.assertEqual(storage.set_calls, [
            'backup_legacy_1700000000000', OPTIMIZED_WORDS_KEY, OPTIMIZED_TESTS_KEY, LAST_CALCULATED_KEY
        ])
        self.assertEqual(result.backup_key, 'backup_legacy_1700000000000')
        backup = storage.data[result.backup_key]
        self.assertEqual(backup['tests'], [SCENARIO_TEST])
        self.assertEqual(backup['keys']['words'], 'vocabularyWords')

    def test_legacy_keys_left_untouched(self):
        storage = legacy_storage()
        self.migrate(storage)
        self.assertEqual(storage.data['vocabulary_test_history'], [SCENARIO_TEST])

    def test_read_failure_is_recorded_and_raised(self):
        storage = legacy_storage()
        storage.fail_on_get['vocabularyWords'] = RuntimeError('corrupt data')
        migrator = LegacyMigrator(storage, clock=FixedClock())

        with self.assertRaises(RuntimeError):
            migrator.migrate()

        self.assertEqual(storage.set_calls, [])
        self.assertEqual(migrator.report.errors_encountered[-1]['type'], 'migration_failure')
        self.assertEqual(migrator.report.errors_encountered[-1]['error'], 'corrupt data')
        self.assertNotEqual(migrator.report.end_time, '')

    def test_save_failure_keeps_backup(self):
        storage = legacy_storage()
        storage.fail_on_set[OPTIMIZED_TESTS_KEY] = OSError('disk full')
        migrator = LegacyMigrator(storage, clock=FixedClock())

        with self.assertRaises(OSError):
            migrator.migrate()

        self.assertEqual(storage.set_calls, ['backup_legacy_1700000000000', OPTIMIZED_WORDS_KEY])
        self.assertEqual(migrator.report.errors_encountered[-1]['type'], 'migration_failure')

    def test_default_run_is_deterministic(self):
        first = self.migrate(legacy_storage(performance={'w2': {'accuracy': 20, 'hintsPercentage': 90}}))
        second = self.migrate(legacy_storage(performance={'w2': {'accuracy': 20, 'hintsPercentage': 90}}))
        self.assertEqual([t.to_dict() for t in first.tests], [t.to_dict() for t in second.tests])

    def test_injected_random_source_samples_hints(self):
        test = self.migrate(legacy_storage(), rng=AlwaysLow()).tests[0]

        self.assertEqual(sum(r.hints_used for r in test.wrong_words), 3)
        self.assertEqual(sum(r.hints_used for r in test.right_words), 0)

    def test_seeded_random_is_reproducible(self):
        first = self.migrate(legacy_storage(), rng=random.Random(42)).tests[0]
        second = self.migrate(legacy_storage(), rng=random.Random(42)).tests[0]
        self.assertEqual(first.to_dict(), second.to_dict())

    def test_quality_score(self):
        report = self.migrate(legacy_storage()).report
        # no per-word detail (-50), no errors, every test estimated (-30)
        self.assertEqual(report.data_quality_score, 20)
        self.assertEqual(report.end_time, '2023-11-14T22:13:20+00:00')

    def test_no_legacy_data(self):
        storage = MockStorage()
        result = self.migrate(storage)

        self.assertEqual(result.words, [])
        self.assertEqual(result.tests, [])
        self.assertEqual(result.report.data_quality_score, 100)


class TestDryRunAndRecovery(unittest.TestCase):
    """Tests for dry runs, readiness checks and backup restore."""

    def test_dry_run_writes_nothing(self):
        storage = legacy_storage()
        result = LegacyMigrator(storage, clock=FixedClock()).dry_run()

        self.assertEqual(storage.set_calls, [])
        self.assertEqual(result.report.tests_processed, 1)
        self.assertEqual(len(result.tests[0].responses), 10)
        self.assertIsNone(result.backup_key)

    def test_dry_run_records_read_failure(self):
        storage = legacy_storage()
        storage.fail_on_get['vocabulary_test_history'] = ValueError('bad json')
        result = LegacyMigrator(storage, clock=FixedClock()).dry_run()

        self.assertEqual(result.tests, [])
        self.assertEqual(result.report.errors_encountered[0]['error'], 'bad json')

    def test_needs_migration(self):
        self.assertFalse(needs_migration(MockStorage()))
        storage = legacy_storage()
        self.assertTrue(needs_migration(storage))
        LegacyMigrator(storage, clock=FixedClock()).migrate()
        self.assertFalse(needs_migration(storage))

    def test_legacy_data_report(self):
        detailed = make_test('t2', '2024-01-12T08:00:00Z', {'1': {'correctWords': 1, 'incorrectWords': 0}},
                             wordTimes=[{'wordId': 'w1', 'timeSpent': 4000, 'isCorrect': True}])
        report = legacy_data_report(legacy_storage([SCENARIO_TEST, detailed]))

        self.assertEqual(report['wordsCount'], 12)
        self.assertEqual(report['testsCount'], 2)
        self.assertEqual(report['testsWithDetailedData'], 1)
        self.assertEqual(report['estimatedQuality'], 50)
        self.assertEqual(report['recommendations'], [])

    def test_legacy_data_report_without_tests(self):
        report = legacy_data_report(legacy_storage([]))

        self.assertEqual(report['testsCount'], 0)
        self.assertEqual(len(report['recommendations']), 2)
        self.assertIsNone(report['keys']['tests'])

    def test_restore_backup(self):
        storage = legacy_storage()
        result = LegacyMigrator(storage, clock=FixedClock()).migrate()
        del storage.data['vocabulary_test_history']
        del storage.data['vocabularyWords']

        self.assertEqual(list_backups(storage), [result.backup_key])
        restored = restore_backup(storage, result.backup_key)

        self.assertEqual(restored, ['vocabularyWords', 'vocabulary_test_history'])
        self.assertEqual(storage.data['vocabulary_test_history'], [SCENARIO_TEST])
        self.assertEqual(storage.data['vocabularyWords'], catalog())

    def test_restore_unknown_backup(self):
        with self.assertRaises(KeyError):
            restore_backup(MockStorage(), 'backup_legacy_1')


class TestAnalyticsAfterMigration(unittest.TestCase):
    """Chapter analytics read migrated data the same way as legacy data."""

    def test_chapter_stats_survive_migration(self):
        storage = legacy_storage()
        before = [s.to_dict() for s in AnalyticsService(storage).chapter_stats()]

        LegacyMigrator(storage, clock=FixedClock()).migrate()
        after = [s.to_dict() for s in AnalyticsService(storage).chapter_stats()]

        self.assertEqual(before, after)
        self.assertEqual(after[0]['fullChapter'], '1')
        self.assertEqual(after[0]['mode'], 'test')
        self.assertEqual(after[0]['accuracy'], 70)

    def test_malformed_legacy_tests_are_skipped(self):
        broken = [
            dict(SCENARIO_TEST, id='t2', chapterStats=['1']),
            dict(SCENARIO_TEST, id='t3', chapterStats={'1': [7, 3]}),
            dict(SCENARIO_TEST, id='t4', chapterStats={'1': {'correctWords': 'many'}}),
            'garbage',
        ]
        service = AnalyticsService(legacy_storage(tests=[SCENARIO_TEST] + broken))

        self.assertEqual([t.id for t in service.load_tests()], ['t1'])
        stats = service.chapter_stats()
        self.assertEqual(stats[0].chapter, '1')
        self.assertEqual(stats[0].tests_performed, 1)
        self.assertEqual(service.overview()['summary']['testedChapters'], 1)

    def test_malformed_migrated_tests_are_skipped(self):
        storage = legacy_storage()
        LegacyMigrator(storage, clock=FixedClock()).migrate()
        storage.data[OPTIMIZED_TESTS_KEY].append({'legacyId': 'no id'})

        tests = AnalyticsService(storage).load_tests()

        self.assertEqual([t.id for t in tests], ['t1'])

    def test_chapter_trend(self):
        service = AnalyticsService(legacy_storage())
        points = service.chapter_trend('1')

        self.assertEqual(len(points), 1)
        self.assertEqual(points[0]['accuracy'], 70)
        self.assertIsNone(service.chapter_trend('2'))


if __name__ == '__main__':
    unittest.main()
