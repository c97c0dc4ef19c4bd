#!/usr/bin/env python3
"""
entrypoint.py
- Command-line entrypoint for the cleanup daemon and one-off maintenance commands.
- Usage:
    docker-cleanup [run|once|disk-space|registry] [options]

- Options override the matching environment variables (see core/config.py).
"""

import argparse
import sys

from loguru import logger

from docker_cleanup import main as daemon
from docker_cleanup.core.config import load_settings, setup_logging
from docker_cleanup.core.docker_client import connect
from docker_cleanup.core.errors import ConfigError
from docker_cleanup.lib.cycle import CYCLE_ERRORS, CycleController
from docker_cleanup.lib.disk_space import make_probe
from docker_cleanup.lib.protection import ImageMatcher
from docker_cleanup.lib.units import format_bytes

COMMANDS = ("run", "once", "disk-space", "registry")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="docker-cleanup",
        description="a GitLab Runner Docker image and cache cleanup tool",
    )
    parser.add_argument("command", nargs="?", default="run", choices=COMMANDS)
    parser.add_argument("--check-path", help="Path to monitor when verifying disk space")
    parser.add_argument("--low-free-space", help="When to trigger cleanup cycle (e.g. 1GB)")
    parser.add_argument("--expected-free-space", help="How much free space to cleanup (e.g. 2GB)")
    parser.add_argument("--low-files-count", dest="low_free_files_count",
                        help="Trigger cleanup cycle if number of i-nodes runs below this value")
    parser.add_argument("--expected-files-count", dest="expected_free_files_count",
                        help="How many free i-nodes to recycle")
    parser.add_argument("--use-df", action="store_const", const=True, default=None,
                        help="Check disk space locally instead of in a docker container")
    parser.add_argument("--check-interval", help="How often to check disk space (e.g. 10s)")
    parser.add_argument("--retry-interval", help="How long to wait before trying again (e.g. 30s)")
    parser.add_argument("--ttl", dest="default_ttl", help="Default minimum TTL for caches and images (e.g. 1m)")
    parser.add_argument("--protected-images-file", help="File with additional protected image patterns")
    parser.add_argument("--disk-space-image", help="Image used by the container disk probe")
    parser.add_argument("--api-port", help="Port of the health and metrics API")
    parser.add_argument("--no-api", dest="api_enabled", action="store_const", const=False, default=None,
                        help="Do not start the health and metrics API")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ...)")
    return parser


def overrides_from_args(args):
    skip = {"command", "log_level"}
    return {key: value for key, value in vars(args).items() if key not in skip and value is not None}


def build_controller(settings):
    client = connect(settings)
    matcher = ImageMatcher(path=settings.protected_images_file)
    probe = make_probe(settings, client.sdk)
    return CycleController(client, probe, settings, matcher)


def run_once(settings):
    try:
        controller = build_controller(settings)
        report = controller.run_cycle()
    except CYCLE_ERRORS as e:
        logger.error(f"[cli] Cleanup cycle failed: {e}")
        return 1
    if report.evicted:
        print(f"Removed {len(report.removed)} objects, freed {format_bytes(report.bytes_freed)} and {report.files_freed} files")
    else:
        print("Nothing to free")
    return 0


def show_disk_space(settings):
    try:
        controller = build_controller(settings)
        disk = controller.measure()
    except CYCLE_ERRORS as e:
        logger.error(f"[cli] Failed to verify disk space: {e}")
        return 1
    print(f"Path:        {settings.check_path}")
    print(f"Free space:  {format_bytes(disk.bytes_free)} of {format_bytes(disk.bytes_total)}")
    print(f"Free files:  {disk.files_free} of {disk.files_total}")
    return 0


def show_registry(settings):
    try:
        controller = build_controller(settings)
        controller.refresh()
    except CYCLE_ERRORS as e:
        logger.error(f"[cli] Failed to read images and containers: {e}")
        return 1

    print(f"{'KIND':<6} {'ID':<20} {'SCORE':>8} {'SIZE':>10}  NAMES")
    for row in controller.registry.summary():
        protected = row["kind"] == "image" and controller.matcher.match(row["tags"])
        names = ", ".join(row.get("tags") or row.get("names") or ["<none>"])
        if protected:
            names += " (protected)"
        print(f"{row['kind']:<6} {row['id'][:20]:<20} {row['score']:>8} {format_bytes(row['size']):>10}  {names}")
    return 0


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level.upper() if args.log_level else None)

    try:
        settings = load_settings(overrides=overrides_from_args(args))
    except ConfigError as e:
        logger.error(f"[config] {e}")
        return 2

    if args.command == "run":
        daemon.init_sentry()
        daemon.run_daemon(settings)
        return 0
    if args.command == "once":
        return run_once(settings)
    if args.command == "disk-space":
        return show_disk_space(settings)
    return show_registry(settings)


if __name__ == "__main__":
    sys.exit(main())
