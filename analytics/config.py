"""Configuration constants for vocab-analytics."""

DATA_VERSION = '3.0.0'

# Chapter label for words without one
NO_CHAPTER = 'No Chapter'

# Word-centric efficiency
HINT_PENALTY_PER_HINT = 15   # Efficiency points lost per hint on a correct answer
MAX_HINT_PENALTY = 45        # Penalty cap
MIN_HINTED_EFFICIENCY = 55   # Floor for a correct answer that used hints

# Rankings
TOP_CHAPTERS_COUNT = 5
STRUGGLING_CHAPTERS_COUNT = 3
STRUGGLING_MIN_TESTED_WORDS = 3  # Chapters with fewer tested words are never "struggling"

# Trend window
TREND_WINDOW_SIZE = 15

# Migration estimation
INCORRECT_TIME_FACTOR = 1.4
CORRECT_TIME_FACTOR = 0.9
DEFAULT_INCORRECT_TIME_MS = 15000
DEFAULT_CORRECT_TIME_MS = 8000
INCORRECT_HINT_FACTOR = 1.5
CORRECT_HINT_FACTOR = 0.7
DEFAULT_INCORRECT_HINT_PROBABILITY = 0.4
DEFAULT_CORRECT_HINT_PROBABILITY = 0.0
BASE_CORRECTNESS_PROBABILITY = 0.5
STREAK_BONUS = 0.2
HIGH_HINT_RATE_PENALTY = 0.1
LEARNED_BONUS = 0.3
DIFFICULT_PENALTY = 0.2
MIN_CORRECTNESS_PROBABILITY = 0.1
MAX_CORRECTNESS_PROBABILITY = 0.9
EASY_TEST_MAX_WORDS = 15     # Fewer words than this => easy
HARD_TEST_MIN_WORDS = 30     # More words than this => hard

# Per-test quality penalties
MISSING_DETAIL_PENALTY = 20
COUNT_MISMATCH_PENALTY = 15
MISSING_TIMING_PENALTY = 10
HINT_MISMATCH_PENALTY = 5
HINT_MISMATCH_TOLERANCE = 1

# Legacy storage keys, most likely first
LEGACY_KEY_CANDIDATES = {
    'words': [
        'vocabularyWords',
        'vocabulary_words',
        'words',
        'wordList',
        'vocabulary_wordList',
    ],
    'tests': [
        'vocabulary_test_history',
        'vocabularyTests',
        'testHistory',
        'test_history',
        'testResults',
        'vocabulary_testResults',
    ],
    'stats': [
        'vocabularyStats',
        'vocabulary_stats',
        'stats',
        'appStats',
    ],
    'performance': [
        'wordPerformance',
        'vocabulary_wordPerformance',
        'word_performance',
        'wordStats',
    ],
}

# Normalized output keys
OPTIMIZED_WORDS_KEY = 'vocabulary_optimized_words'
OPTIMIZED_TESTS_KEY = 'vocabulary_optimized_tests'
LAST_CALCULATED_KEY = 'vocabulary_last_calculated'
MIGRATION_FLAG_KEY = 'vocabulary_migrated'
MIGRATION_REPORT_KEY = 'vocabulary_migration_report'
BACKUP_KEY_PREFIX = 'backup_legacy_'
