"""Unit tests for domain models and utilities."""

import unittest
from datetime import datetime, timezone

from analytics.models import (
    AttemptRecord, ChapterStat, MigratedTest, MigrationReport, QualityCheck, TestSummary, Word
)
from analytics.utils import parse_timestamp, percentage, split_sentence_field, timestamp_to_str


class TestUtils(unittest.TestCase):
    """Tests for utility functions."""

    def test_parse_iso_with_z(self):
        self.assertEqual(parse_timestamp('2024-05-01T12:00:00Z'),
                         datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))

    def test_parse_naive_iso_assumes_utc(self):
        self.assertEqual(parse_timestamp('2024-05-01T12:00:00').tzinfo, timezone.utc)

    def test_parse_epoch_ms(self):
        self.assertEqual(parse_timestamp(1700000000000),
                         datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc))

    def test_parse_invalid(self):
        for value in (None, '', 'soon', True, [2024]):
            self.assertIsNone(parse_timestamp(value))

    def test_timestamp_to_str(self):
        self.assertEqual(timestamp_to_str(1700000000000), '2023-11-14T22:13:20+00:00')
        self.assertEqual(timestamp_to_str('soon'), 'soon')
        self.assertEqual(timestamp_to_str(None), '')

    def test_split_sentence_field(self):
        self.assertEqual(split_sentence_field('One.| Two. ;Three.'), ['One.', 'Two.', 'Three.'])
        self.assertEqual(split_sentence_field('Just one.'), 'Just one.')
        self.assertIsNone(split_sentence_field(''))
        self.assertEqual(split_sentence_field(['already', 'split']), ['already', 'split'])

    def test_percentage(self):
        self.assertEqual(percentage(1, 4), 25)
        self.assertEqual(percentage(3, 0), 0)
        self.assertEqual(percentage(5, 4), 100)
        self.assertEqual(percentage(-1, 4), 0)


class TestWord(unittest.TestCase):
    """Tests for Word."""

    def test_from_dict(self):
        word = Word.from_dict({'id': 7, 'english': 'house', 'italian': 'casa', 'chapter': 3, 'learned': 1})
        self.assertEqual(word.id, '7')
        self.assertEqual(word.chapter, '3')
        self.assertTrue(word.learned)
        self.assertFalse(word.difficult)

    def test_from_dict_requires_id(self):
        with self.assertRaises(ValueError):
            Word.from_dict({'english': 'house'})
        with self.assertRaises(ValueError):
            Word.from_dict('house')


class TestAttemptRecord(unittest.TestCase):
    """Tests for AttemptRecord."""

    def test_hint_flag_counts_as_one_hint(self):
        attempt = AttemptRecord.from_dict({'correct': True, 'usedHint': True}, word_id='w1')
        self.assertEqual(attempt.hints_count, 1)
        self.assertTrue(attempt.hinted)
        self.assertEqual(attempt.word_id, 'w1')

    def test_time_spent_alias(self):
        attempt = AttemptRecord.from_dict({'wordId': 'w2', 'correct': False, 'timeSpent': 4200})
        self.assertEqual(attempt.time_response_ms, 4200)
        self.assertFalse(attempt.hinted)


class TestTestSummary(unittest.TestCase):
    """Tests for TestSummary."""

    def test_from_dict(self):
        test = TestSummary.from_dict({
            'id': 12,
            'timestamp': '2024-01-01T10:00:00Z',
            'totalWords': '4',
            'correctWords': 3,
            'incorrectWords': 1,
            'chapterStats': {1: {'correctWords': 3, 'incorrectWords': 1, 'percentage': 75}},
            'wrongWords': [{'id': 9, 'english': 'cat'}, {'english': 'no id'}],
            'testParameters': {'selectedChapters': [1, '2']}
        })
        self.assertEqual(test.total_words, 4)
        self.assertEqual(test.hints_used, 0)
        self.assertEqual(test.chapter_stats['1'].answers, 4)
        self.assertEqual(test.wrong_word_ids, ['9'])
        self.assertEqual(test.selected_chapters, ['1', '2'])
        self.assertFalse(test.has_exact_detail)

    def test_from_dict_requires_id(self):
        with self.assertRaises(ValueError):
            TestSummary.from_dict({'totalWords': 3})


class TestChapterStat(unittest.TestCase):
    """Tests for ChapterStat."""

    def test_has_tests_depends_on_mode(self):
        word_mode = ChapterStat('1')
        word_mode.tests_performed = 2
        self.assertFalse(word_mode.has_tests)
        word_mode.tested_words = 1
        self.assertTrue(word_mode.has_tests)

        test_mode = ChapterStat('1', mode='test')
        self.assertFalse(test_mode.has_tests)
        test_mode.tests_performed = 1
        self.assertTrue(test_mode.has_tests)

    def test_to_dict_rounds(self):
        stat = ChapterStat('4')
        stat.precision = 66.6
        stat.efficiency = 59.4
        stat.total_hints = 1.23456
        data = stat.to_dict()
        self.assertEqual(data['chapter'], 'Ch. 4')
        self.assertEqual(data['fullChapter'], '4')
        self.assertEqual(data['accuracy'], 67)
        self.assertEqual(data['efficiency'], 59)
        self.assertEqual(data['estimatedHints'], 1.23)
        self.assertIsNone(data['firstTestDate'])


class TestMigrationRecords(unittest.TestCase):
    """Tests for QualityCheck, MigratedTest and MigrationReport."""

    def test_quality_check_floor(self):
        check = QualityCheck()
        for _ in range(6):
            check.penalize(20, 'missing')
        self.assertEqual(check.accuracy_score, 0)
        self.assertFalse(check.has_estimations)
        check.penalize(5, 'hints', estimation=True)
        self.assertTrue(check.has_estimations)
        self.assertEqual(len(check.warnings), 7)

    def test_migrated_test_summary_view(self):
        stored = {
            'id': 'migrated_5_1',
            'legacyId': 5,
            'timestamp': '2024-02-02T08:00:00+00:00',
            'totalWords': 2,
            'correctWords': 1,
            'incorrectWords': 1,
            'hintsUsed': 1,
            'chapterStats': {'3': {'correctWords': 1, 'incorrectWords': 1, 'percentage': 50}},
            'rightWords': [{'wordId': 'a', 'timeResponse': 4000, 'isCorrect': True}],
            'wrongWords': [{'wordId': 'b', 'timeResponse': 9000, 'hintsUsed': 1, 'estimated': True}],
        }
        test = MigratedTest.from_dict(stored)
        self.assertEqual(len(test.responses), 2)
        self.assertTrue(test.wrong_words[0].estimated)

        summary = test.to_summary()
        self.assertEqual(summary.id, 5)
        self.assertEqual(summary.hints_used, 1)
        self.assertEqual(summary.chapter_stats['3'].percentage, 50)

    def test_report_errors(self):
        report = MigrationReport('2024-01-01T00:00:00+00:00')
        report.add_error('word_migration', 'Word 3: cat', 'no id')
        data = report.to_dict()
        self.assertEqual(data['errorsEncountered'], [{'type': 'word_migration', 'item': 'Word 3: cat', 'error': 'no id'}])
        self.assertEqual(MigrationReport.from_dict(data).errors_encountered, data['errorsEncountered'])


if __name__ == '__main__':
    unittest.main()
