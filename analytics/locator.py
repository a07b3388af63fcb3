"""Lookup of legacy data stored under historically used key names."""

import logging

from .config import LEGACY_KEY_CANDIDATES
from .interfaces import Storage

logger = logging.getLogger(__name__)

# Shape each category must have to count as a match
_EXPECTED_TYPES = {
    'words': (list,),
    'tests': (list,),
    'stats': (dict,),
    'performance': (dict, list),
}


def _empty_value(category: str):
    return [] if _EXPECTED_TYPES[category][0] is list else {}


class LegacySnapshot:
    """Legacy blobs found in storage, with the key each one was read from."""

    def __init__(self, words: list, tests: list, stats: dict, performance,
                 keys: dict[str, str | None]):
        self.words = words
        self.tests = tests
        self.stats = stats
        self.performance = performance
        self.keys = keys

    @property
    def is_empty(self) -> bool:
        return not self.words and not self.tests

    def to_dict(self) -> dict:
        return {
            'words': self.words,
            'tests': self.tests,
            'stats': self.stats,
            'performance': self.performance,
            'keys': self.keys
        }


class LegacyRecordLocator:
    """Probes the ordered candidate keys of each legacy data category.

    The first candidate holding a non-empty value of the expected shape wins.
    Values are never merged across candidate keys.
    """

    def __init__(self, storage: Storage, candidates: dict[str, list[str]] = None):
        self.storage = storage
        self.candidates = candidates or LEGACY_KEY_CANDIDATES

    def locate(self, category: str) -> tuple[str | None, object]:
        """Return (key, value) for a category, or (None, empty value) if nothing matches."""
        if category not in self.candidates:
            raise KeyError(f"Unknown legacy data category: {category}")
        expected = _EXPECTED_TYPES.get(category, (list, dict))
        for key in self.candidates[category]:
            value = self.storage.get(key)
            if value is None:
                continue
            if not isinstance(value, expected):
                logger.warning(f"Ignoring legacy {category} under '{key}': unexpected {type(value).__name__}")
                continue
            if len(value) == 0:
                continue
            logger.info(f"Legacy {category} found in '{key}' ({len(value)} entries)")
            return key, value
        logger.info(f"No legacy {category} found in keys: {self.candidates[category]}")
        return None, _empty_value(category)

    def load_all(self) -> LegacySnapshot:
        """Locate every category. Storage errors propagate to the caller."""
        found = {category: self.locate(category) for category in ('words', 'tests', 'stats', 'performance')}
        return LegacySnapshot(
            words=found['words'][1],
            tests=found['tests'][1],
            stats=found['stats'][1],
            performance=found['performance'][1],
            keys={category: key for category, (key, _) in found.items()}
        )
