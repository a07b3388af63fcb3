"""REST API client for the vocab-analytics server."""

import requests
from urllib.parse import quote


class AnalyticsAPIClient:
    """Client for communicating with the vocab-analytics REST API."""

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 30):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()

    def _get(self, endpoint: str, params: dict = None) -> dict:
        """Make a GET request."""
        response = self.session.get(f"{self.base_url}{endpoint}", params=params or {}, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _post(self, endpoint: str, data: dict = None) -> dict:
        """Make a POST request."""
        response = self.session.post(f"{self.base_url}{endpoint}", json=data or {}, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def health_check(self) -> dict:
        """Check if the server is running."""
        return self._get("/")

    def get_chapters(self) -> dict:
        """Get per-chapter stats."""
        return self._get("/api/chapters")

    def get_overview(self) -> dict:
        """Get overview figures with top and struggling chapters."""
        return self._get("/api/chapters/overview")

    def get_trend(self, chapter: str) -> dict:
        """Get the accuracy trend of a chapter."""
        return self._get(f"/api/chapters/{quote(chapter, safe='')}/trend")

    def get_migration_status(self) -> dict:
        """Get legacy migration status."""
        return self._get("/api/migration/status")

    def dry_run_migration(self) -> dict:
        """Validate the legacy data without migrating it."""
        return self._post("/api/migration/dry-run")

    def run_migration(self) -> dict:
        """Run the legacy migration."""
        return self._post("/api/migration")

    def get_backups(self) -> dict:
        """List legacy backups."""
        return self._get("/api/migration/backups")

    def restore_backup(self, backup_key: str) -> dict:
        """Restore legacy data from a backup."""
        return self._post(f"/api/migration/backups/{quote(backup_key, safe='')}/restore")
