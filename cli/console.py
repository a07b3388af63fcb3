"""Console UI for vocab-analytics."""

import requests

from cli.api_client import AnalyticsAPIClient


class ConsoleUI:
    """Console user interface for the analytics API."""

    def __init__(self, client: AnalyticsAPIClient):
        self.client = client

    def print_chapters(self, chapters: list[dict]):
        """Print a table of chapter stats."""
        if not chapters:
            print('No chapters found.')
            return
        print('=' * 78)
        print(f"{'Chapter':<16} {'Words':>6} {'Tested':>7} {'Accuracy':>9} {'Hints':>6} "
              f"{'Effic.':>7} {'Done':>6} {'Diff.':>6}")
        print('-' * 78)
        for c in chapters:
            tested = f"{c['testedWords']}/{c['totalWords']}"
            if c['hasTests']:
                figures = f"{c['accuracy']:>8}% {c['hintsPercentage']:>5}% {c['efficiency']:>6}%"
            else:
                figures = f"{'-':>9} {'-':>6} {'-':>7}"
            print(f"{c['chapter']:<16} {c['totalWords']:>6} {tested:>7} {figures} "
                  f"{c['completionRate']:>5}% {c['difficultyRate']:>5}%")
        print('=' * 78)
        modes = {c['mode'] for c in chapters}
        if 'test' in modes:
            print('Hint figures are estimated from test-wide totals.')

    def print_overview(self, overview: dict):
        """Print overview figures and rankings."""
        summary = overview['summary']
        print('=' * 40)
        print(f"Chapters:            {summary['totalChapters']}")
        print(f"Tested chapters:     {summary['testedChapters']}")
        print(f"Best efficiency:     {summary['bestEfficiency']}%")
        print(f"Average completion:  {summary['averageCompletion']}%")
        print(f"Average accuracy:    {summary['averageAccuracy']}%")
        print('=' * 40)
        if overview['topChapters']:
            print('\nTop chapters:')
            for i, c in enumerate(overview['topChapters'], 1):
                print(f"  {i}. {c['chapter']}: {c['efficiency']}% efficiency")
        if overview['strugglingChapters']:
            print('\nNeeds work:')
            for i, c in enumerate(overview['strugglingChapters'], 1):
                print(f"  {i}. {c['chapter']}: {c['efficiency']}% efficiency, "
                      f"{c['untestedPercentage']}% untested")

    def print_trend(self, trend: dict):
        """Print a chapter's accuracy trend as a bar chart."""
        points = trend['points']
        print(f"Trend for chapter {trend['chapter']} ({len(points)} tests)")
        print('-' * 60)
        for p in points:
            bar = '#' * int(round(p['accuracy'] / 5))
            print(f"{p['fullDate']:<17} {p['accuracy']:>5}% {bar}")

    def print_report(self, report: dict):
        """Print a migration report."""
        print('-' * 40)
        print(f"Started:        {report['startTime']}")
        print(f"Finished:       {report['endTime']}")
        print(f"Words:          {report['wordsProcessed']}")
        print(f"Tests:          {report['testsProcessed']}")
        print(f"Estimations:    {report['estimationsUsed']}")
        print(f"Quality score:  {report['dataQualityScore']}/100")
        print('-' * 40)
        if report['errorsEncountered']:
            print(f"\nErrors ({len(report['errorsEncountered'])}):")
            for error in report['errorsEncountered']:
                print(f"  [{error['type']}] {error['item']}: {error['error']}")
        if report['warnings']:
            print(f"\nWarnings ({len(report['warnings'])}):")
            for warning in report['warnings']:
                print(f"  {warning}")

    def print_status(self, status: dict):
        """Print migration status."""
        legacy = status['legacy']
        print(f"Migrated:            {'yes' if status['migrated'] else 'no'}")
        print(f"Needs migration:     {'yes' if status['needsMigration'] else 'no'}")
        print(f"Legacy words:        {legacy['wordsCount']}")
        print(f"Legacy tests:        {legacy['testsCount']} "
              f"({legacy['testsWithDetailedData']} with per-word detail)")
        print(f"Estimated quality:   {legacy['estimatedQuality']}%")
        for recommendation in legacy['recommendations']:
            print(f"  * {recommendation}")

    def run(self, command: str, target: str = None) -> int:
        """Run a single command. Returns a process exit code."""
        try:
            if command == 'chapters':
                self.print_chapters(self.client.get_chapters()['chapters'])
            elif command == 'overview':
                self.print_overview(self.client.get_overview())
            elif command == 'trend':
                self.print_trend(self.client.get_trend(target))
            elif command == 'status':
                self.print_status(self.client.get_migration_status())
            elif command == 'dry-run':
                self.print_report(self.client.dry_run_migration())
            elif command == 'migrate':
                result = self.client.run_migration()
                print(f"Migrated {result['wordsMigrated']} words and {result['testsMigrated']} tests.")
                print(f"Legacy backup: {result['backupKey']}")
                self.print_report(result['report'])
            elif command == 'backups':
                for key in self.client.get_backups()['backups']:
                    print(key)
            elif command == 'restore':
                result = self.client.restore_backup(target)
                print(f"Restored {', '.join(result['restoredKeys']) or 'nothing'} from {result['backupKey']}")
            else:
                print(f'Unknown command: {command}')
                return 2
        except requests.HTTPError as e:
            detail = str(e)
            if e.response is not None and e.response.headers.get('content-type', '').startswith('application/json'):
                detail = e.response.json().get('detail', detail)
            print(f'Error: {detail}')
            return 1
        except requests.ConnectionError:
            print(f'Error: cannot reach server at {self.client.base_url}')
            return 1
        return 0
