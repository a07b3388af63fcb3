"""Domain models for vocab-analytics."""

from .config import NO_CHAPTER, DATA_VERSION
from .utils import timestamp_to_str

# Errors that mark a single malformed stored record
ITEM_ERRORS = (ValueError, TypeError, KeyError, AttributeError)


def _chapter_label(value) -> str | None:
    if value is None or value == '':
        return None
    return str(value)


def _as_int(value, default: int = 0) -> int:
    if value is None:
        return default
    return int(value)


class Word:
    """A vocabulary word from the catalog. Read-only for analytics."""

    def __init__(self, id: str, english: str, italian: str, chapter: str = None,
                 group: str = None, learned: bool = False, difficult: bool = False):
        self.id = id
        self.english = english
        self.italian = italian
        self.chapter = chapter
        self.group = group
        self.learned = learned
        self.difficult = difficult
        self.sentence = None
        self.notes = None
        self.synonyms = []
        self.antonyms = []
        self.created_at = None
        self.updated_at = None

    @property
    def chapter_key(self) -> str:
        """Chapter label used for grouping; words without one share NO_CHAPTER."""
        return self.chapter or NO_CHAPTER

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'english': self.english,
            'italian': self.italian,
            'group': self.group,
            'sentence': self.sentence,
            'notes': self.notes,
            'chapter': self.chapter,
            'learned': self.learned,
            'difficult': self.difficult,
            'synonyms': self.synonyms,
            'antonyms': self.antonyms,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Word':
        if not isinstance(data, dict):
            raise ValueError(f"Word record must be an object, got {type(data).__name__}")
        if data.get('id') in (None, ''):
            raise ValueError("Word record has no id")
        word = cls(
            str(data['id']),
            data.get('english') or '',
            data.get('italian') or '',
            chapter=_chapter_label(data.get('chapter')),
            group=data.get('group'),
            learned=bool(data.get('learned', False)),
            difficult=bool(data.get('difficult', False))
        )
        word.sentence = data.get('sentence')
        word.notes = data.get('notes')
        word.synonyms = list(data.get('synonyms') or [])
        word.antonyms = list(data.get('antonyms') or [])
        word.created_at = data.get('createdAt')
        word.updated_at = data.get('updatedAt')
        return word


class AttemptRecord:
    """One recorded answer for a word."""

    def __init__(self, word_id: str, correct: bool, used_hint: bool = False,
                 hints_count: int = 0, time_response_ms: int = 0, timestamp=None):
        self.word_id = word_id
        self.correct = correct
        self.used_hint = used_hint
        self.hints_count = hints_count
        self.time_response_ms = time_response_ms
        self.timestamp = timestamp

    @property
    def hinted(self) -> bool:
        """True when the answer was flagged as hinted or counted any hints."""
        return self.used_hint or self.hints_count > 0

    def to_dict(self) -> dict:
        return {
            'wordId': self.word_id,
            'correct': self.correct,
            'usedHint': self.used_hint,
            'hintsCount': self.hints_count,
            'timeResponseMs': self.time_response_ms,
            'timestamp': self.timestamp
        }

    @classmethod
    def from_dict(cls, data: dict, word_id: str = None) -> 'AttemptRecord':
        used_hint = bool(data.get('usedHint', False))
        hints_count = data.get('hintsCount')
        if hints_count is None:
            # Older records only flag hint usage
            hints_count = 1 if used_hint else 0
        time_ms = data.get('timeResponseMs', data.get('timeSpent', 0))
        return cls(
            str(data.get('wordId', word_id)),
            bool(data.get('correct', False)),
            used_hint=used_hint,
            hints_count=int(hints_count),
            time_response_ms=int(time_ms or 0),
            timestamp=data.get('timestamp')
        )


class WordPerformance:
    """Attempt history for a single word."""

    def __init__(self, word_id: str, attempts: list[AttemptRecord] = None):
        self.word_id = word_id
        self.attempts = attempts or []

    def to_dict(self) -> dict:
        return {
            'wordId': self.word_id,
            'attempts': [a.to_dict() for a in self.attempts]
        }

    @classmethod
    def from_dict(cls, data: dict, word_id: str = None) -> 'WordPerformance':
        word_id = str(data.get('wordId') or data.get('id') or word_id)
        attempts = [AttemptRecord.from_dict(a, word_id) for a in data.get('attempts') or []]
        return cls(word_id, attempts)


class ChapterBreakdown:
    """Per-chapter counters stored inside a legacy test summary."""

    def __init__(self, correct_words: int = 0, incorrect_words: int = 0, percentage: float = 0):
        self.correct_words = correct_words
        self.incorrect_words = incorrect_words
        self.percentage = percentage

    @property
    def answers(self) -> int:
        return self.correct_words + self.incorrect_words

    def to_dict(self) -> dict:
        return {
            'correctWords': self.correct_words,
            'incorrectWords': self.incorrect_words,
            'percentage': self.percentage
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ChapterBreakdown':
        return cls(
            _as_int(data.get('correctWords')),
            _as_int(data.get('incorrectWords')),
            data.get('percentage') or 0
        )


class TestSummary:
    """Aggregate record of one historical test. Never mutated."""

    def __init__(self, id, timestamp, total_words: int, correct_words: int,
                 incorrect_words: int, hints_used: int = 0):
        self.id = id
        self.timestamp = timestamp
        self.total_words = total_words
        self.correct_words = correct_words
        self.incorrect_words = incorrect_words
        self.hints_used = hints_used
        self.total_time = 0          # seconds
        self.avg_time_per_word = 0   # seconds
        self.percentage = 0
        self.chapter_stats = {}      # chapter -> ChapterBreakdown
        self.wrong_words = []        # raw legacy word dicts
        self.word_times = []         # raw {wordId, timeSpent, isCorrect, usedHint}
        self.selected_chapters = []
        self.test_type = None
        self.difficulty = None

    @property
    def has_exact_detail(self) -> bool:
        return len(self.word_times) > 0

    @property
    def wrong_word_ids(self) -> list[str]:
        return [str(w['id']) for w in self.wrong_words if isinstance(w, dict) and w.get('id') is not None]

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'timestamp': self.timestamp,
            'totalWords': self.total_words,
            'correctWords': self.correct_words,
            'incorrectWords': self.incorrect_words,
            'hintsUsed': self.hints_used,
            'totalTime': self.total_time,
            'avgTimePerWord': self.avg_time_per_word,
            'percentage': self.percentage,
            'chapterStats': {ch: s.to_dict() for ch, s in self.chapter_stats.items()},
            'wrongWords': self.wrong_words,
            'wordTimes': self.word_times,
            'testParameters': {'selectedChapters': self.selected_chapters},
            'testType': self.test_type,
            'difficulty': self.difficulty
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'TestSummary':
        if not isinstance(data, dict):
            raise ValueError(f"Test record must be an object, got {type(data).__name__}")
        if data.get('id') is None:
            raise ValueError("Test record has no id")
        test = cls(
            data['id'],
            data.get('timestamp'),
            _as_int(data.get('totalWords')),
            _as_int(data.get('correctWords')),
            _as_int(data.get('incorrectWords')),
            _as_int(data.get('hintsUsed'))
        )
        test.total_time = data.get('totalTime') or 0
        test.avg_time_per_word = data.get('avgTimePerWord') or 0
        test.percentage = data.get('percentage') or 0
        test.chapter_stats = {
            str(chapter): ChapterBreakdown.from_dict(stats or {})
            for chapter, stats in (data.get('chapterStats') or {}).items()
        }
        test.wrong_words = list(data.get('wrongWords') or [])
        test.word_times = list(data.get('wordTimes') or [])
        params = data.get('testParameters') or {}
        test.selected_chapters = [str(c) for c in params.get('selectedChapters') or data.get('selectedChapters') or []]
        test.test_type = data.get('testType')
        test.difficulty = data.get('difficulty')
        return test


class ChapterStat:
    """Derived per-chapter metrics. Always recomputed, never persisted as a source."""

    def __init__(self, chapter: str, mode: str = 'word'):
        self.chapter = chapter
        self.mode = mode
        self.total_words = 0
        self.learned_words = 0
        self.difficult_words = 0
        self.tested_words = 0
        self.untested_words = 0
        self.total_attempts = 0
        self.correct_attempts = 0
        self.total_hints = 0.0
        self.tests_performed = 0
        self.precision = 0.0
        self.hints_percentage = 0.0
        self.efficiency = 0.0
        self.completion_rate = 0.0
        self.untested_percentage = 0.0
        self.difficulty_rate = 0.0
        self.first_test_date = None

    @property
    def has_tests(self) -> bool:
        if self.mode == 'test':
            return self.tests_performed > 0
        return self.tested_words > 0

    @property
    def display_name(self) -> str:
        if self.chapter == NO_CHAPTER:
            return 'No Ch.'
        return f'Ch. {self.chapter}'

    def to_dict(self) -> dict:
        return {
            'chapter': self.display_name,
            'fullChapter': self.chapter,
            'mode': self.mode,
            'totalWords': self.total_words,
            'learnedWords': self.learned_words,
            'difficultWords': self.difficult_words,
            'testedWords': self.tested_words,
            'untestedWords': self.untested_words,
            'hasTests': self.has_tests,
            'totalAttempts': self.total_attempts,
            'correctAttempts': self.correct_attempts,
            'testsPerformed': self.tests_performed,
            'estimatedHints': round(self.total_hints, 2),
            'accuracy': round(self.precision),
            'hintsPercentage': round(self.hints_percentage),
            'efficiency': round(self.efficiency),
            'completionRate': round(self.completion_rate),
            'untestedPercentage': round(self.untested_percentage),
            'difficultyRate': round(self.difficulty_rate),
            'firstTestDate': self.first_test_date.isoformat() if self.first_test_date else None
        }


class DetailedWordResponse:
    """Normalized outcome of one word in one test."""

    def __init__(self, word_id: str, time_response: int, hints_used: int,
                 current_difficulty: str, is_correct: bool, timestamp: str,
                 estimated: bool = False):
        self.word_id = word_id
        self.time_response = time_response
        self.hints_used = hints_used
        self.current_difficulty = current_difficulty
        self.is_correct = is_correct
        self.timestamp = timestamp
        self.estimated = estimated

    def to_dict(self) -> dict:
        return {
            'wordId': self.word_id,
            'timeResponse': self.time_response,
            'hintsUsed': self.hints_used,
            'currentDifficulty': self.current_difficulty,
            'isCorrect': self.is_correct,
            'timestamp': self.timestamp,
            'estimated': self.estimated
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'DetailedWordResponse':
        return cls(
            str(data['wordId']),
            int(data.get('timeResponse', 0)),
            int(data.get('hintsUsed', 0)),
            data.get('currentDifficulty', 'medium'),
            bool(data.get('isCorrect', False)),
            data.get('timestamp', ''),
            estimated=bool(data.get('estimated', False))
        )


class QualityCheck:
    """Quality verdict for one migrated test."""

    def __init__(self):
        self.has_estimations = False
        self.warnings = []
        self.accuracy_score = 100

    def penalize(self, points: int, warning: str, estimation: bool = False) -> None:
        self.warnings.append(warning)
        self.accuracy_score = max(0, self.accuracy_score - points)
        if estimation:
            self.has_estimations = True


class MigratedTest:
    """Normalized test record produced by the legacy migration."""

    def __init__(self, id: str, legacy_id, timestamp: str):
        self.id = id
        self.legacy_id = legacy_id
        self.timestamp = timestamp
        self.total_words = 0
        self.correct_words = 0
        self.incorrect_words = 0
        self.total_time = 0          # ms
        self.avg_time_per_word = 0   # ms
        self.percentage = 0
        self.difficulty = 'medium'
        self.hints_used = 0
        self.selected_chapters = []
        self.test_type = 'complete'
        self.chapter_stats = {}
        self.right_words = []
        self.wrong_words = []
        self.has_estimations = False
        self.quality_score = 100
        self.version = DATA_VERSION

    @property
    def responses(self) -> list[DetailedWordResponse]:
        return self.right_words + self.wrong_words

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'legacyId': self.legacy_id,
            'timestamp': self.timestamp,
            'totalWords': self.total_words,
            'correctWords': self.correct_words,
            'incorrectWords': self.incorrect_words,
            'totalTime': self.total_time,
            'avgTimePerWord': self.avg_time_per_word,
            'percentage': self.percentage,
            'difficulty': self.difficulty,
            'hintsUsed': self.hints_used,
            'selectedChapters': self.selected_chapters,
            'testType': self.test_type,
            'chapterStats': {ch: s.to_dict() for ch, s in self.chapter_stats.items()},
            'rightWords': [r.to_dict() for r in self.right_words],
            'wrongWords': [r.to_dict() for r in self.wrong_words],
            'hasEstimations': self.has_estimations,
            'qualityScore': self.quality_score,
            'version': self.version
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'MigratedTest':
        test = cls(data['id'], data.get('legacyId'), timestamp_to_str(data.get('timestamp')))
        test.total_words = _as_int(data.get('totalWords'))
        test.correct_words = _as_int(data.get('correctWords'))
        test.incorrect_words = _as_int(data.get('incorrectWords'))
        test.total_time = data.get('totalTime') or 0
        test.avg_time_per_word = data.get('avgTimePerWord') or 0
        test.percentage = data.get('percentage') or 0
        test.difficulty = data.get('difficulty', 'medium')
        test.hints_used = _as_int(data.get('hintsUsed'))
        test.selected_chapters = list(data.get('selectedChapters') or [])
        test.test_type = data.get('testType', 'complete')
        test.chapter_stats = {
            str(ch): ChapterBreakdown.from_dict(s or {})
            for ch, s in (data.get('chapterStats') or {}).items()
        }
        test.right_words = [DetailedWordResponse.from_dict(r) for r in data.get('rightWords') or []]
        test.wrong_words = [DetailedWordResponse.from_dict(r) for r in data.get('wrongWords') or []]
        test.has_estimations = bool(data.get('hasEstimations', False))
        test.quality_score = data.get('qualityScore', 100)
        test.version = data.get('version', DATA_VERSION)
        return test

    def to_summary(self) -> TestSummary:
        """View this record as a TestSummary for chapter aggregation and trends."""
        summary = TestSummary(self.legacy_id if self.legacy_id is not None else self.id,
                              self.timestamp, self.total_words, self.correct_words,
                              self.incorrect_words, self.hints_used)
        summary.percentage = self.percentage
        summary.chapter_stats = dict(self.chapter_stats)
        summary.selected_chapters = list(self.selected_chapters)
        summary.test_type = self.test_type
        summary.difficulty = self.difficulty
        return summary


class MigrationReport:
    """Outcome of one migration run. Fresh per run, never merged."""

    def __init__(self, start_time: str):
        self.start_time = start_time
        self.end_time = ''
        self.words_processed = 0
        self.tests_processed = 0
        self.errors_encountered = []
        self.warnings = []
        self.estimations_used = 0
        self.data_quality_score = 0

    def add_error(self, error_type: str, item: str, error: str) -> None:
        self.errors_encountered.append({
            'type': error_type,
            'item': item,
            'error': error
        })

    def to_dict(self) -> dict:
        return {
            'startTime': self.start_time,
            'endTime': self.end_time,
            'wordsProcessed': self.words_processed,
            'testsProcessed': self.tests_processed,
            'errorsEncountered': self.errors_encountered,
            'warnings': self.warnings,
            'estimationsUsed': self.estimations_used,
            'dataQualityScore': self.data_quality_score
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'MigrationReport':
        report = cls(data.get('startTime', ''))
        report.end_time = data.get('endTime', '')
        report.words_processed = data.get('wordsProcessed', 0)
        report.tests_processed = data.get('testsProcessed', 0)
        report.errors_encountered = list(data.get('errorsEncountered') or [])
        report.warnings = list(data.get('warnings') or [])
        report.estimations_used = data.get('estimationsUsed', 0)
        report.data_quality_score = data.get('dataQualityScore', 0)
        return report
