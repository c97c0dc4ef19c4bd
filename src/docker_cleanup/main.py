#!/usr/bin/env python3
"""
main.py
- Main entrypoint for the docker-cleanup daemon.
- Launches:
    - Cleanup loop: reconcile, mark and evict whenever disk space or inodes run low
    - Protected images file watcher
    - HTTP API for health, metrics, registry inspection and manual cycles
"""
import asyncio
import signal
import sys
from threading import Thread

import sentry_sdk
import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from loguru import logger

from docker_cleanup.core.config import SENTRY_DSN, describe, load_settings, setup_logging
from docker_cleanup.core.errors import ConfigError
from docker_cleanup.core.config_loader import preview_file
from docker_cleanup.lib import metrics
from docker_cleanup.lib.cycle import CYCLE_ERRORS, CycleController
from docker_cleanup.lib.protection import ImageMatcher
from docker_cleanup.runner import change_detection
from docker_cleanup.runner.cleanup import CleanupLoop

# --- FastAPI Server ---
api = FastAPI()
api.state.controller = None


def get_controller():
    controller = api.state.controller
    if controller is None or controller.client is None:
        raise HTTPException(status_code=503, detail="not connected to the Docker daemon")
    return controller


@api.get("/healthz")
def health():
    return {"status": "ok", "docker_connected": bool(metrics.docker_connected)}


@api.get("/metrics")
def prometheus_metrics():
    return PlainTextResponse(metrics.render(), media_type="text/plain")


@api.get("/registry")
def registry():
    controller = api.state.controller
    if controller is None:
        return {"objects": []}
    # Snapshot read; a running cycle must not block status requests.
    return {"objects": controller.registry.summary()}


@api.post("/cycle")
def run_cycle_now():
    controller = get_controller()
    try:
        report = controller.run_cycle()
    except CYCLE_ERRORS as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {
        "status": "ok",
        "evicted": report.evicted,
        "removed": len(report.removed),
        "bytes_freed": report.bytes_freed,
        "files_freed": report.files_freed,
    }


def start_api(port):
    uvicorn.run(api, host="0.0.0.0", port=port, log_level="warning")


def init_sentry():
    # Only if you have a Sentry DSN
    if SENTRY_DSN:
        sentry_sdk.init(dsn=SENTRY_DSN, traces_sample_rate=1.0)


def handle_exit(signum, frame):
    logger.info("📴 Received shutdown signal. Exiting...")
    sys.exit(0)


def build(settings):
    """Wire matcher, controller and loop for the given settings."""
    matcher = ImageMatcher(path=settings.protected_images_file)
    controller = CycleController(None, None, settings, matcher)
    api.state.controller = controller
    return matcher, controller, CleanupLoop(controller)


def run_daemon(settings):
    for line in describe(settings):
        logger.debug(f"[config] {line}")
    preview_file(settings.protected_images_file, name="protected images")

    matcher, controller, loop = build(settings)

    # --- Start background threads ---
    if settings.api_enabled:
        Thread(target=start_api, args=(settings.api_port,), daemon=True).start()
    change_detection.start(matcher)

    signal.signal(signal.SIGTERM, handle_exit)
    try:
        asyncio.run(loop.run())
    except (KeyboardInterrupt, SystemExit):
        loop.disconnect()
        logger.info("🛑 Cleanup loop stopped.")


def main():
    setup_logging()
    init_sentry()
    try:
        settings = load_settings()
    except ConfigError as e:
        logger.error(f"[config] {e}")
        sys.exit(1)
    run_daemon(settings)


if __name__ == "__main__":
    main()
