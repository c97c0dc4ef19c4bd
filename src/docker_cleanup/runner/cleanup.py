#!/usr/bin/env python3
"""
cleanup.py
- Outer loop of the cleanup daemon.
- Each iteration: (re)connect if the daemon connection is unhealthy, run one cycle,
  then sleep CHECK_INTERVAL after success or RETRY_INTERVAL after any failure.
- Reconnection only happens here, between cycles.
"""

import asyncio

from docker.errors import DockerException
from loguru import logger
from requests.exceptions import RequestException

from docker_cleanup.core.docker_client import connect
from docker_cleanup.lib import metrics
from docker_cleanup.lib.cycle import CYCLE_ERRORS
from docker_cleanup.lib.disk_space import make_probe

CONNECTION_ERRORS = (DockerException, RequestException)


class CleanupLoop:
    def __init__(self, controller, connector=connect, probe_factory=make_probe):
        self.controller = controller
        self.settings = controller.settings
        self.connector = connector
        self.probe_factory = probe_factory
        self.client = controller.client
        self.should_run = True
        self.last_error = None

    def disconnect(self):
        if self.client is not None:
            self.client.close()
        self.client = None
        metrics.set_connected(False)

    def ensure_connected(self):
        """Return True when a healthy client is bound to the controller."""
        if self.client is not None:
            try:
                self.client.ping()
                return True
            except CONNECTION_ERRORS as e:
                logger.warning(f"[runner] Lost connection to daemon: {e}")
                self.disconnect()

        try:
            client = self.connector(self.settings)
        except CONNECTION_ERRORS as e:
            logger.warning(f"[runner] Failed to connect to daemon: {e}")
            self.last_error = e
            metrics.set_connected(False)
            return False

        self.client = client
        self.controller.bind(client, self.probe_factory(self.settings, getattr(client, "sdk", None)))
        metrics.set_connected(True)
        return True

    def run_once(self):
        """
        Run one cycle. Returns True on success.
        """
        if not self.ensure_connected():
            return False
        try:
            self.controller.run_cycle()
        except CYCLE_ERRORS as e:
            logger.warning(f"[runner] Cleanup cycle failed: {e}")
            self.last_error = e
            return False
        self.last_error = None
        return True

    def step(self):
        """Run one iteration and return how long to sleep before the next one."""
        if self.run_once():
            return self.settings.check_interval
        return self.settings.retry_interval

    async def run(self):
        logger.info("[runner] Watching disk space...")
        while self.should_run:
            delay = self.step()
            logger.debug(f"[runner] Sleeping for {delay} seconds...")
            await asyncio.sleep(delay)
        self.disconnect()

    def stop(self):
        self.should_run = False
