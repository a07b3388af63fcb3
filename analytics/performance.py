"""Per-word attempt history lookup."""

from .models import AttemptRecord, WordPerformance
from .utils import parse_timestamp


def chronological(attempts: list[AttemptRecord]) -> list[AttemptRecord]:
    """Attempts ordered by timestamp when every one has a parseable timestamp.

    Otherwise the stored order is kept.
    """
    moments = [parse_timestamp(a.timestamp) for a in attempts]
    if not attempts or any(m is None for m in moments):
        return list(attempts)
    order = sorted(range(len(attempts)), key=lambda i: moments[i])
    return [attempts[i] for i in order]


class WordPerformanceSummary:
    """Historical figures for one word, used to estimate legacy outcomes."""

    def __init__(self, total_attempts: int = 0, correct_attempts: int = 0,
                 accuracy: float | None = None, hints_percentage: float | None = None,
                 avg_time_ms: float | None = None, current_streak: int = 0):
        self.total_attempts = total_attempts
        self.correct_attempts = correct_attempts
        self.accuracy = accuracy
        self.hints_percentage = hints_percentage
        self.avg_time_ms = avg_time_ms
        self.current_streak = current_streak

    @classmethod
    def from_attempts(cls, attempts: list[AttemptRecord]) -> 'WordPerformanceSummary':
        if not attempts:
            return cls()
        total = len(attempts)
        correct = sum(1 for a in attempts if a.correct)
        hinted = sum(1 for a in attempts if a.hinted)
        streak = 0
        for attempt in reversed(chronological(attempts)):
            if not attempt.correct:
                break
            streak += 1
        return cls(
            total_attempts=total,
            correct_attempts=correct,
            accuracy=correct / total * 100,
            hints_percentage=hinted / total * 100,
            avg_time_ms=sum(a.time_response_ms for a in attempts) / total,
            current_streak=streak
        )

    @classmethod
    def from_legacy(cls, entry: dict) -> 'WordPerformanceSummary':
        """Read a legacy per-word entry: either an attempt list or aggregate figures.

        Aggregate entries store avgTime in seconds.
        """
        if not isinstance(entry, dict):
            return cls()
        if entry.get('attempts'):
            return cls.from_attempts(WordPerformance.from_dict(entry).attempts)
        avg_time = entry.get('avgTime')
        return cls(
            total_attempts=int(entry.get('totalAttempts') or 0),
            correct_attempts=int(entry.get('correctAttempts') or 0),
            accuracy=entry.get('accuracy'),
            hints_percentage=entry.get('hintsPercentage'),
            avg_time_ms=avg_time * 1000 if avg_time else None,
            current_streak=int(entry.get('currentStreak') or 0)
        )


class PerformanceIndex:
    """wordId -> attempt history."""

    def __init__(self, performances: list[WordPerformance] = None):
        self._attempts = {}
        for perf in performances or []:
            self._attempts.setdefault(perf.word_id, []).extend(perf.attempts)

    @classmethod
    def from_records(cls, records) -> 'PerformanceIndex':
        """Build from a list of performance records or a dict keyed by wordId."""
        if isinstance(records, dict):
            items = [WordPerformance.from_dict(v, word_id=str(k))
                     for k, v in records.items() if isinstance(v, dict)]
        else:
            items = [WordPerformance.from_dict(r) for r in records or [] if isinstance(r, dict)]
        return cls(items)

    def __len__(self) -> int:
        return sum(1 for attempts in self._attempts.values() if attempts)

    def __contains__(self, word_id: str) -> bool:
        return self.has_attempts(word_id)

    def attempts(self, word_id: str) -> list[AttemptRecord]:
        return self._attempts.get(word_id, [])

    def has_attempts(self, word_id: str) -> bool:
        return len(self.attempts(word_id)) > 0

    def word_ids(self) -> list[str]:
        return [word_id for word_id, attempts in self._attempts.items() if attempts]

    def summary(self, word_id: str) -> WordPerformanceSummary:
        return WordPerformanceSummary.from_attempts(self.attempts(word_id))
