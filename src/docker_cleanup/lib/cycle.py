"""
cycle.py
- One full cleanup pass: reconcile images -> reconcile caches and mark -> check disk -> evict -> report.
- The controller owns the registry; cycles are serialized by its lock so the HTTP
  trigger and the background loop never run concurrently.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import List, Optional

from docker.errors import DockerException
from loguru import logger
from requests.exceptions import RequestException

from docker_cleanup.core.errors import CleanupError
from docker_cleanup.core.state import Registry
from docker_cleanup.lib import metrics
from docker_cleanup.lib.disk_space import DiskSpace
from docker_cleanup.lib.eviction import free_space
from docker_cleanup.lib.marker import mark_reachable
from docker_cleanup.lib.units import format_bytes

CYCLE_ERRORS = (CleanupError, DockerException, RequestException)


@dataclass
class CycleReport:
    before: DiskSpace
    after: Optional[DiskSpace] = None
    evicted: bool = False
    removed: List = field(default_factory=list)

    @property
    def bytes_freed(self):
        if self.after is None:
            return 0
        return self.after.bytes_free - self.before.bytes_free

    @property
    def files_freed(self):
        if self.after is None:
            return 0
        return self.after.files_free - self.before.files_free


class CycleController:
    def __init__(self, client, probe, settings, matcher, registry=None):
        self.client = client
        self.probe = probe
        self.settings = settings
        self.matcher = matcher
        self.registry = registry if registry is not None else Registry()
        self.lock = threading.Lock()

    def bind(self, client, probe):
        """Swap in a fresh runtime client and probe after a reconnect; the registry is kept."""
        with self.lock:
            self.client = client
            self.probe = probe

    def refresh(self, now=None):
        """Reconcile the registry with the daemon and run the mark phase."""
        now = time.time() if now is None else now
        ttl = self.settings.default_ttl

        try:
            images = self.client.list_images(include_all=True)
        except CYCLE_ERRORS as e:
            logger.warning(f"[cycle] Failed to update images: {e}")
            raise
        self.registry.reconcile_images(images, ttl, now)

        try:
            containers = self.client.list_containers(include_all=True)
        except CYCLE_ERRORS as e:
            logger.warning(f"[cycle] Failed to update caches: {e}")
            raise
        others = self.registry.reconcile_containers(containers, ttl, now)
        mark_reachable(self.client, self.registry, others, ttl, now)
        metrics.record_registry(self.registry)

    def measure(self):
        return self.probe.measure(self.settings.check_path)

    def run_cycle(self, now=None):
        """
        Run one cleanup cycle.

        Returns:
            CycleReport: evicted=False when both low-water marks were satisfied.

        Raises:
            CleanupError, DockerException: listing, probe or eviction failures.
        """
        with self.lock:
            start_time = time.time()
            try:
                report = self._run_cycle(now)
            except CYCLE_ERRORS:
                metrics.record_cycle(time.time() - start_time, ok=False)
                raise
            metrics.record_cycle(
                time.time() - start_time, ok=True, evicted=report.evicted, bytes_freed=report.bytes_freed
            )
            return report

    def _run_cycle(self, now):
        s = self.settings
        self.refresh(now)

        try:
            disk = self.measure()
        except CYCLE_ERRORS as e:
            logger.warning(f"[cycle] Failed to verify disk space: {e}")
            raise

        space_ok = disk.bytes_free >= s.low_free_space
        files_ok = disk.files_free >= s.low_free_files_count
        if space_ok and files_ok:
            logger.debug(
                f"[cycle] Nothing to free. Free disk space {format_bytes(disk.bytes_free)} is above the lower bound "
                f"{format_bytes(s.low_free_space)}, free files count {disk.files_free} is above the lower bound "
                f"{s.low_free_files_count}"
            )
            return CycleReport(before=disk)

        if not space_ok:
            logger.warning(
                f"[cycle] Freeing disk space. The disk space is below the lower bound: {format_bytes(disk.bytes_free)}, "
                f"trying to free up to: {format_bytes(s.expected_free_space)}"
            )
        if not files_ok:
            logger.warning(
                f"[cycle] Freeing files count. The free file count is below the lower bound: {disk.files_free}, "
                f"trying to free up to: {s.expected_free_files_count}"
            )

        report = CycleReport(before=disk, evicted=True)
        try:
            report.removed = free_space(
                self.client, self.probe, self.registry, self.matcher,
                s.check_path, s.expected_free_space, s.expected_free_files_count, now,
            )
        except CYCLE_ERRORS as e:
            logger.warning(f"[cycle] Failed to free disk space: {e}")
            self._report_freed(report)
            raise

        self._report_freed(report)
        return report

    def _report_freed(self, report):
        try:
            report.after = self.measure()
        except CYCLE_ERRORS as e:
            logger.debug(f"[cycle] Could not re-measure disk space: {e}")
            return
        logger.info(
            f"[cycle] Freed bytes: {format_bytes(report.bytes_freed)} files: {report.files_freed}"
        )
