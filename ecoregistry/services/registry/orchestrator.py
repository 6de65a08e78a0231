# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Update Orchestrator

Single responsibility: Bring the registry up to date with the module index

A run has two phases:
    Ingest  - drain the index since the stored watermark (time-boxed) and, in
              one transaction, insert unseen paths and advance the watermark
              together with the events already read at it
    Resolve - resolve the latest version and info time of every record that
              lacks them, with bounded concurrency; each record is written as
              soon as it is resolved

Failure policy:
    - Ingest storage or feed errors abort the run with nothing written.
    - "No versions" and 404/410 answers during resolution are recorded on
      the record (soft failures).
    - Anything else during resolution cancels all workers and is raised as
      ResolutionError.
"""

import asyncio
import logging
import time
from contextlib import aclosing
from dataclasses import dataclass
from typing import Iterator, Optional

from ecoregistry.core.config import Config
from ecoregistry.core.errors import (
    NoVersionsError,
    ResolutionError,
    UpstreamStatusError,
    sanitize_error_for_user,
)
from ecoregistry.core.logging import log_event
from ecoregistry.models.module_models import ModuleRecord, UpdateReport
from ecoregistry.services.proxy.client import FetchClient
from ecoregistry.services.proxy.feed import (
    DEFAULT_INDEX_URL,
    FeedCursor,
    decode_boundary,
    encode_boundary,
)
from ecoregistry.services.proxy.module_proxy import ModuleProxy
from .latest import LatestVersionFinder
from .store import BOUNDARY_PARAM, ModuleRegistry, WATERMARK_PARAM

logger = logging.getLogger(__name__)

ALL_RETRACTED_ERROR = "all versions retracted"
MISSING_TIME_ERROR = "version info has no time"


@dataclass
class UpdateConfig:
    """Update run settings"""
    duration: float = 60.0
    resolve_qps: float = 200.0
    worker_limit: int = 10
    page_limit: int = 0
    index_url: str = DEFAULT_INDEX_URL
    progress_interval: int = 1000

    @classmethod
    def from_config(cls, config: Config, duration: Optional[float] = None) -> "UpdateConfig":
        return cls(
            duration=config.update_duration if duration is None else duration,
            resolve_qps=config.resolve_qps,
            worker_limit=config.worker_limit,
            page_limit=config.index_page_limit,
            index_url=config.index_url,
            progress_interval=config.progress_interval,
        )


def is_soft_failure(error: BaseException) -> bool:
    """Whether a resolution failure is recorded rather than raised."""
    if isinstance(error, NoVersionsError):
        return True
    return isinstance(error, UpstreamStatusError) and error.is_not_found


class UpdateOrchestrator:
    """Drives ingestion and resolution against the registry"""

    def __init__(
        self,
        registry: ModuleRegistry,
        client: FetchClient,
        proxy: ModuleProxy,
        config: Optional[UpdateConfig] = None,
        finder: Optional[LatestVersionFinder] = None
    ):
        """
        Initialize orchestrator.

        Args:
            registry: Module registry store
            client: Shared fetch client (its rate is raised for resolution)
            proxy: Module proxy client built on the same fetch client
            config: Update run settings
            finder: Latest version finder (defaults to one over proxy)
        """
        self.registry = registry
        self.client = client
        self.proxy = proxy
        self.config = config or UpdateConfig()
        self.finder = finder or LatestVersionFinder(proxy)
        self._done = 0

    async def run(self) -> UpdateReport:
        """
        Run ingest then resolve.

        Returns:
            Counts for the run

        Raises:
            StorageError: If the ingest transaction fails
            ResolutionError: On the first hard resolution failure
        """
        report = UpdateReport()
        await self.ingest(report)
        await self.resolve(report)
        log_event(logger, "update finished", **report.model_dump())
        return report

    # -- Ingest --

    async def ingest(self, report: UpdateReport) -> UpdateReport:
        """
        Read new index events and record unseen module paths.

        Args:
            report: Report to fill in

        Returns:
            The same report
        """
        start = time.monotonic()
        mods = await self.registry.load_all()
        logger.info(f"Read {len(mods)} modules from DB in {time.monotonic() - start:.1f}s")

        since = await self.registry.get_param(WATERMARK_PARAM) or ""
        boundary = decode_boundary(await self.registry.get_param(BOUNDARY_PARAM)) if since else []
        logger.info(f"Reading index from {since!r} ({len(boundary)} events already read there)")

        seen = set()
        watermark = since
        deadline = time.monotonic() + self.config.duration
        cursor = FeedCursor(
            self.client, since, self.config.page_limit, self.config.index_url, boundary=boundary
        )
        async with aclosing(cursor.events()) as events:
            async for event in events:
                if time.monotonic() > deadline:
                    break
                seen.add(event.path)
                # The boundary is the consumed run at the newest timestamp.
                if event.timestamp != watermark:
                    watermark = event.timestamp
                    boundary = []
                boundary.append(event)
                report.events_seen += 1
        error = cursor.error()
        if error is not None:
            logger.error(f"Reading index failed after {report.events_seen} events: {error}")
            raise error

        logger.info(f"Saw {len(seen)} unique paths in {report.events_seen} index events")

        new_paths = sorted(p for p in seen if p not in mods)
        params = None
        if report.events_seen:
            params = {WATERMARK_PARAM: watermark, BOUNDARY_PARAM: encode_boundary(boundary)}
        await self.registry.insert_modules(new_paths, params)

        report.paths_seen = len(seen)
        report.paths_inserted = len(new_paths)
        report.watermark = watermark or None
        logger.info(f"Read index to {watermark!r}")
        return report

    # -- Resolve --

    async def resolve(self, report: UpdateReport) -> UpdateReport:
        """
        Resolve every record missing a version or info time.

        Args:
            report: Report to fill in

        Returns:
            The same report

        Raises:
            ResolutionError: First hard failure; all other workers are cancelled
        """
        mods = await self.registry.load_all()
        pending = [m for m in mods.values() if m.needs_resolution]
        logger.info(f"Resolving {len(pending)} modules with {self.config.worker_limit} workers")
        if not pending:
            return report

        previous_rate = self.client.rate
        self.client.set_rate(self.config.resolve_qps)
        self.client.reset_qps()
        self._done = 0
        # Workers share one iterator, so each record is taken exactly once.
        records = iter(pending)
        try:
            async with asyncio.TaskGroup() as tg:
                for _ in range(min(self.config.worker_limit, len(pending))):
                    tg.create_task(self._worker(records, len(pending), report))
        except ExceptionGroup as eg:
            logger.error(f"Resolution aborted after {self._done} modules: {eg.exceptions[0]}")
            raise eg.exceptions[0]
        finally:
            self.client.set_rate(previous_rate)

        logger.info(
            f"Resolved {self._done} modules: {report.resolved_with_version} with a version, "
            f"{report.resolved_with_error} with an error"
        )
        return report

    async def _worker(self, records: Iterator[ModuleRecord], total: int, report: UpdateReport):
        for record in records:
            await self.resolve_one(record)
            if record.error:
                report.resolved_with_error += 1
            else:
                report.resolved_with_version += 1
            self._done += 1
            if self.config.progress_interval > 0 and self._done % self.config.progress_interval == 0:
                logger.info(f"progress: {self._done}/{total}, proxy QPS = {self.client.qps():.1f}")

    async def resolve_one(self, record: ModuleRecord):
        """
        Resolve one record and persist it.

        Args:
            record: Record to resolve (mutated in place)

        Raises:
            ResolutionError: On a hard failure
        """
        version = record.latest_version
        if not version:
            try:
                version = await self.finder.find(record.path)
            except Exception as e:
                if not is_soft_failure(e):
                    raise ResolutionError(record.path, "latest", e) from e
                logger.debug(f"{record.path}: {e}")
                await self._save_error(record, e)
                return
            if not version:
                record.set_error(ALL_RETRACTED_ERROR)
                await self._save(record)
                return

        try:
            info = await self.proxy.info(record.path, version)
        except Exception as e:
            if not is_soft_failure(e):
                raise ResolutionError(record.path, "info", e) from e
            await self._save_error(record, e)
            return

        if not info.time:
            # A version is only stored together with its time.
            record.set_error(f"{MISSING_TIME_ERROR} for {version}")
            await self._save(record)
            return

        record.set_resolved(version, info.time, info.origin_json())
        await self._save(record)

    async def _save_error(self, record: ModuleRecord, error: Exception):
        record.set_error(sanitize_error_for_user(error))
        await self._save(record)

    async def _save(self, record: ModuleRecord):
        try:
            await self.registry.update_module(record)
        except Exception as e:
            raise ResolutionError(record.path, "update", e) from e
