"""Write a sample legacy vocabulary snapshot into file storage.

The snapshot mimics data saved by older versions of the trainer: words and
aggregate test summaries under historical key names, a few tests with
per-word timing records and most without.

Run from the project root: python -m scripts.seed_legacy --data-dir DIR
"""

import argparse
import random
import sys
from datetime import datetime, timedelta, timezone

from server.file_storage import FileStorage


def get_seed_words():
    """Italian/English vocabulary by chapter: {chapter: [(english, italian, sentence)]}."""
    return {
        '1': [
            ('house', 'casa', 'My house is small.'),
            ('dog', 'cane', 'The dog barks.|The dog sleeps.'),
            ('cat', 'gatto', 'The cat is black.'),
            ('water', 'acqua', 'I drink water.'),
            ('bread', 'pane', 'Fresh bread; warm bread'),
            ('book', 'libro', 'I read a book.'),
        ],
        '2': [
            ('to run', 'correre', 'I run every morning.'),
            ('to eat', 'mangiare', 'We eat at noon.'),
            ('to sleep', 'dormire', 'Children sleep a lot.'),
            ('to write', 'scrivere', 'She writes letters.'),
            ('to understand', 'capire', 'I do not understand.'),
        ],
        '3': [
            ('neighbourhood', 'quartiere', 'A quiet neighbourhood.'),
            ('unfortunately', 'purtroppo', 'Unfortunately it rained.'),
            ('to take care of', 'prendersi cura di', 'She takes care of her garden.'),
            ('meanwhile', 'nel frattempo', 'Meanwhile, dinner was ready.'),
        ],
        None: [
            ('however', 'tuttavia', None),
            ('although', 'sebbene', None),
        ],
    }


def build_snapshot(test_count: int, seed: int) -> dict:
    rng = random.Random(seed)
    words = []
    for chapter, items in get_seed_words().items():
        for english, italian, sentence in items:
            words.append({
                'id': f'w{len(words) + 1}',
                'english': english,
                'italian': italian,
                'chapter': chapter,
                'sentence': sentence,
                'learned': rng.random() < 0.3,
                'difficult': len(english) > 10
            })

    start = datetime(2024, 1, 8, 18, 30, tzinfo=timezone.utc)
    tests = []
    for i in range(test_count):
        chapters = rng.sample(['1', '2', '3'], rng.randint(1, 3))
        pool = [w for w in words if w['chapter'] in chapters]
        asked = rng.sample(pool, rng.randint(max(1, len(pool) // 2), len(pool)))
        wrong = [w for w in asked if rng.random() < (0.45 if w['difficult'] else 0.25)]
        wrong_ids = {w['id'] for w in wrong}
        chapter_stats = {}
        for chapter in chapters:
            in_chapter = [w for w in asked if w['chapter'] == chapter]
            if not in_chapter:
                continue
            incorrect = sum(1 for w in in_chapter if w['id'] in wrong_ids)
            correct = len(in_chapter) - incorrect
            chapter_stats[chapter] = {
                'correctWords': correct,
                'incorrectWords': incorrect,
                'percentage': round(correct / len(in_chapter) * 100)
            }
        total_time = sum(rng.randint(4, 20) for _ in asked)
        test = {
            'id': 1700000000000 + i,
            'timestamp': (start + timedelta(days=i * 2, minutes=rng.randint(0, 120))).isoformat(),
            'totalWords': len(asked),
            'correctWords': len(asked) - len(wrong),
            'incorrectWords': len(wrong),
            'hintsUsed': rng.randint(0, max(1, len(asked) // 4)),
            'totalTime': total_time,
            'avgTimePerWord': round(total_time / len(asked), 1),
            'percentage': round((len(asked) - len(wrong)) / len(asked) * 100),
            'wrongWords': wrong,
            'chapterStats': chapter_stats,
            'testParameters': {'selectedChapters': chapters}
        }
        if i % 4 == 3:
            test['wordTimes'] = [
                {
                    'wordId': w['id'],
                    'timeSpent': rng.randint(3000, 20000),
                    'isCorrect': w['id'] not in wrong_ids,
                    'usedHint': rng.random() < 0.2
                }
                for w in asked
            ]
        tests.append(test)

    performance = {}
    for w in words:
        attempts = rng.randint(0, 6)
        if not attempts:
            continue
        correct = rng.randint(0, attempts)
        performance[w['id']] = {
            'accuracy': round(correct / attempts * 100),
            'hintsPercentage': rng.choice([0, 0, 20, 40, 60]),
            'avgTime': rng.randint(4, 15),
            'currentStreak': rng.randint(0, correct)
        }

    return {
        'vocabularyWords': words,
        'vocabulary_test_history': tests,
        'wordPerformance': performance,
        'vocabularyStats': {'testsCompleted': len(tests), 'timeSpent': sum(t['totalTime'] for t in tests)}
    }


def main():
    parser = argparse.ArgumentParser(description='Seed a legacy vocabulary snapshot')
    parser.add_argument('--data-dir', default=None, help='File storage directory')
    parser.add_argument('--tests', type=int, default=20, help='Number of legacy tests')
    parser.add_argument('--seed', type=int, default=7, help='Random seed')
    args = parser.parse_args()

    storage = FileStorage(args.data_dir)
    for key, value in build_snapshot(args.tests, args.seed).items():
        storage.set(key, value)
        print(f"Wrote {key}")
    print(f"Legacy snapshot written to {storage.data_dir}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
