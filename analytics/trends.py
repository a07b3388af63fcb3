"""Bounded chronological accuracy series per chapter."""

from .config import TREND_WINDOW_SIZE
from .utils import full_date_label, parse_timestamp, short_date_label


class TrendBuilder:
    """Builds the most recent accuracy points for a chapter, oldest first."""

    def __init__(self, window_size: int = TREND_WINDOW_SIZE):
        self.window_size = window_size

    def trend(self, chapter_history: list[dict]) -> list[dict]:
        """Sort entries by timestamp, keep the newest window_size, label them.

        Entries without a parseable timestamp are ignored. Older entries beyond
        the window are dropped.
        """
        dated = []
        for entry in chapter_history or []:
            moment = parse_timestamp(entry.get('date')) or parse_timestamp(entry.get('timestamp'))
            if moment is None:
                continue
            dated.append((moment, entry))
        dated.sort(key=lambda item: item[0])
        recent = dated[-self.window_size:] if self.window_size > 0 else []

        return [
            {
                'testNumber': f'Test {index + 1}',
                'date': short_date_label(moment),
                'fullDate': full_date_label(moment),
                'accuracy': entry.get('accuracy', 0),
                'correct': entry.get('correct', 0),
                'incorrect': entry.get('incorrect', 0),
                'timestamp': moment.isoformat()
            }
            for index, (moment, entry) in enumerate(recent)
        ]
