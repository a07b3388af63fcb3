"""FastAPI server for vocab-analytics."""

import logging
import os

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Optional

logger = logging.getLogger(__name__)

from analytics.config import MIGRATION_FLAG_KEY, MIGRATION_REPORT_KEY
from analytics.interfaces import Storage
from analytics.migration import (
    LegacyMigrator, legacy_data_report, list_backups, needs_migration, restore_backup
)
from analytics.service import AnalyticsService

from server.file_storage import FileStorage
from server.postgres_storage import PostgresStorage


# Pydantic models for API
class ChapterStatResponse(BaseModel):
    chapter: str
    fullChapter: str
    mode: str
    totalWords: int
    learnedWords: int
    difficultWords: int
    testedWords: int
    untestedWords: int
    hasTests: bool
    totalAttempts: int
    correctAttempts: int
    testsPerformed: int
    estimatedHints: float
    accuracy: int
    hintsPercentage: int
    efficiency: int
    completionRate: int
    untestedPercentage: int
    difficultyRate: int
    firstTestDate: Optional[str]


class ChaptersResponse(BaseModel):
    total: int
    chapters: list[ChapterStatResponse]


class OverviewSummary(BaseModel):
    totalChapters: int
    testedChapters: int
    bestEfficiency: int
    averageCompletion: int
    averageAccuracy: int


class OverviewResponse(BaseModel):
    summary: OverviewSummary
    topChapters: list[ChapterStatResponse]
    strugglingChapters: list[ChapterStatResponse]


class TrendPoint(BaseModel):
    testNumber: str
    date: str
    fullDate: str
    accuracy: float
    correct: int
    incorrect: int
    timestamp: Optional[str]


class TrendResponse(BaseModel):
    chapter: str
    points: list[TrendPoint]


class MigrationReportResponse(BaseModel):
    startTime: str
    endTime: str
    wordsProcessed: int
    testsProcessed: int
    errorsEncountered: list[dict]
    warnings: list[str]
    estimationsUsed: int
    dataQualityScore: int


class MigrationStatusResponse(BaseModel):
    needsMigration: bool
    migrated: bool
    legacy: dict
    lastReport: Optional[MigrationReportResponse]


class MigrationResponse(BaseModel):
    wordsMigrated: int
    testsMigrated: int
    backupKey: Optional[str]
    report: MigrationReportResponse


# Global state (in production, use proper DI)
storage: Storage = None


def get_service() -> AnalyticsService:
    return AnalyticsService(storage)


app = FastAPI(title="Vocab Analytics API", description="Chapter analytics and legacy test-history migration")


@app.on_event("startup")
async def startup():
    """Initialize storage on startup."""
    global storage

    # File storage by default, set VOCAB_STORAGE=postgres to use PostgreSQL
    storage_type = os.environ.get('VOCAB_STORAGE', 'file')
    if storage_type == 'postgres':
        storage = PostgresStorage()
        logger.info("Using PostgreSQL storage")
    else:
        storage = FileStorage()
        logger.info(f"Using file storage in {storage.data_dir}")


@app.get("/")
async def root():
    """Health check."""
    return {"status": "ok", "service": "vocab-analytics"}


# Chapter analytics
@app.get("/api/chapters", response_model=ChaptersResponse)
async def get_chapters():
    """Per-chapter stats, tested chapters first by efficiency."""
    stats = get_service().chapter_stats()
    return {
        "total": len(stats),
        "chapters": [s.to_dict() for s in stats]
    }


@app.get("/api/chapters/overview", response_model=OverviewResponse)
async def get_overview():
    """Global figures plus top and struggling chapters."""
    return get_service().overview()


@app.get("/api/chapters/{chapter}/trend", response_model=TrendResponse)
async def get_chapter_trend(chapter: str):
    """Most recent accuracy points for a chapter, oldest first."""
    points = get_service().chapter_trend(chapter)
    if points is None:
        raise HTTPException(status_code=404, detail=f"No tests recorded for chapter {chapter}")
    return {"chapter": chapter, "points": points}


# Legacy migration
@app.get("/api/migration/status", response_model=MigrationStatusResponse)
async def get_migration_status():
    """Whether a migration is pending, with a description of the legacy data."""
    return {
        "needsMigration": needs_migration(storage),
        "migrated": bool(storage.get(MIGRATION_FLAG_KEY)),
        "legacy": legacy_data_report(storage),
        "lastReport": storage.get(MIGRATION_REPORT_KEY)
    }


@app.post("/api/migration/dry-run", response_model=MigrationReportResponse)
async def dry_run_migration():
    """Convert and validate legacy data without saving anything."""
    result = LegacyMigrator(storage).dry_run()
    return result.report.to_dict()


@app.post("/api/migration", response_model=MigrationResponse)
async def run_migration():
    """Run the legacy migration once.

    The migration does not deduplicate tests across runs, so a persisted flag
    refuses a second run.
    """
    if storage.get(MIGRATION_FLAG_KEY):
        raise HTTPException(status_code=409, detail="Legacy data already migrated")
    if not needs_migration(storage):
        raise HTTPException(status_code=409, detail="No legacy data to migrate")

    migrator = LegacyMigrator(storage)
    try:
        result = migrator.migrate()
    except Exception as e:
        logger.error(f"Error in run_migration: {type(e).__name__}: {e}")
        if migrator.report is not None:
            storage.set(MIGRATION_REPORT_KEY, migrator.report.to_dict())
        raise HTTPException(status_code=500, detail=f"Migration failed: {type(e).__name__}: {str(e)}")

    storage.set(MIGRATION_REPORT_KEY, result.report.to_dict())
    storage.set(MIGRATION_FLAG_KEY, True)
    return {
        "wordsMigrated": len(result.words),
        "testsMigrated": len(result.tests),
        "backupKey": result.backup_key,
        "report": result.report.to_dict()
    }


@app.get("/api/migration/backups")
async def get_backups():
    """Legacy backups written by past migrations."""
    backups = list_backups(storage)
    return {"total": len(backups), "backups": backups}


@app.post("/api/migration/backups/{backup_key}/restore")
async def restore_legacy_backup(backup_key: str):
    """Write a backup's legacy blobs back to their original keys."""
    if backup_key not in list_backups(storage):
        raise HTTPException(status_code=404, detail=f"Backup not found: {backup_key}")
    restored = restore_backup(storage, backup_key)
    return {"backupKey": backup_key, "restoredKeys": restored}


def create_app():
    """Factory function for creating the app (useful for testing)."""
    return app
