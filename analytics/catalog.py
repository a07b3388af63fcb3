"""Chapter projections of the word catalog."""

from .models import Word


def load_words(records: list) -> list[Word]:
    """Build Word objects from catalog records, skipping ones without an id."""
    words = []
    for record in records or []:
        if isinstance(record, Word):
            words.append(record)
        elif isinstance(record, dict) and record.get('id') not in (None, ''):
            words.append(Word.from_dict(record))
    return words


class WordCatalogProjector:
    """Groups the word catalog by chapter and counts per-chapter totals."""

    @staticmethod
    def group_by_chapter(words: list[Word]) -> dict[str, list[Word]]:
        """Chapter -> words, in order of first appearance."""
        chapters = {}
        for word in words:
            chapters.setdefault(word.chapter_key, []).append(word)
        return chapters

    @classmethod
    def chapter_counts(cls, words: list[Word]) -> dict[str, dict]:
        counts = {}
        for chapter, chapter_words in cls.group_by_chapter(words).items():
            counts[chapter] = {
                'totalWords': len(chapter_words),
                'learnedWords': sum(1 for w in chapter_words if w.learned),
                'difficultWords': sum(1 for w in chapter_words if w.difficult)
            }
        return counts

    @classmethod
    def chapters(cls, words: list[Word]) -> list[str]:
        return sorted(cls.group_by_chapter(words))
