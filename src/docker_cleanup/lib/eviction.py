"""
eviction.py
- Sweep phase of the cleanup cycle.
- Repeatedly removes the highest-scoring unprotected image or cache container until
  free bytes and free inodes reach their targets, or nothing is left to remove.
- Removals are best-effort: a failed removal is logged and the loop moves on.
"""

import time

from docker.errors import DockerException
from loguru import logger
from requests.exceptions import RequestException

from docker_cleanup.core.constants import NO_CANDIDATE_SCORE
from docker_cleanup.core.errors import NoCandidatesError
from docker_cleanup.core.state import is_cache_container
from docker_cleanup.lib import metrics
from docker_cleanup.lib.units import format_bytes

REMOVAL_ERRORS = (DockerException, RequestException)


def remove_image(client, image):
    """Remove an image. Returns the error on failure, None on success."""
    try:
        client.remove_image(image.id)
    except REMOVAL_ERRORS as e:
        logger.warning(f"[eviction] Failed to remove image {image.id} {list(image.repo_tags)} {str(e).strip()}")
        metrics.record_removal("image", ok=False)
        return e
    logger.info(f"[eviction] Removed image {image.id} {list(image.repo_tags)}")
    metrics.record_removal("image", ok=True)
    return None


def remove_cache(client, cache):
    """Force-remove a cache container together with its volumes. Returns the error on failure."""
    try:
        client.remove_container(cache.id, force=True, remove_volumes=True)
    except REMOVAL_ERRORS as e:
        logger.warning(f"[eviction] Failed to remove cache {cache.id} {list(cache.names)} {str(e).strip()}")
        metrics.record_removal("cache", ok=False)
        return e
    logger.info(f"[eviction] Removed cache {cache.id} {list(cache.names)}")
    metrics.record_removal("cache", ok=True)
    return None


def find_candidate(images, containers, registry, matcher, now=None):
    """
    Pick the single best eviction candidate from the snapshot.

    Images are considered only when tracked and not protected; containers only
    when they are tracked caches. Both share one score scale, and the first
    object seen wins ties.

    Returns:
        tuple(kind, index, score) | None: kind is "image" or "cache", index points into the snapshot list.
    """
    best_score = NO_CANDIDATE_SCORE
    best = None

    for idx, image in enumerate(images):
        if matcher.is_protected(image):
            continue
        info = registry.images.get(image.id)
        if info is None:
            continue
        score = info.score(now)
        if score > best_score:
            best_score = score
            best = ("image", idx, score)

    for idx, container in enumerate(containers):
        if not is_cache_container(*container.names):
            continue
        info = registry.caches.get(container.id)
        if info is None:
            continue
        score = info.score(now)
        if score > best_score:
            best_score = score
            best = ("cache", idx, score)

    return best


def targets_met(disk, free_bytes, free_files):
    return disk.bytes_free >= free_bytes and disk.files_free >= free_files


def free_space(client, probe, registry, matcher, check_path, free_bytes, free_files, now=None):
    """
    Evict images and caches until the disk has `free_bytes` and `free_files` available.

    The image and container listings are taken once, on entry.

    Args:
        client: Runtime client (list_images, list_containers, remove_image, remove_container).
        probe: Disk probe with measure(path).
        registry (Registry): Tracked objects and their TTL state.
        matcher (ImageMatcher): Protected-image patterns.
        check_path (str): Path handed to the probe.
        free_bytes (int): Target free bytes.
        free_files (int): Target free inodes.
        now (float | None): Fixed scoring time; defaults to the wall clock at each iteration.

    Returns:
        list: The objects removed successfully, once both targets are met.

    Raises:
        NoCandidatesError: when the targets are still unmet and nothing is left to remove.
        DiskProbeError, DockerException: probe or listing failures, immediately.
    """
    try:
        images = client.list_images(include_all=False)
    except REMOVAL_ERRORS as e:
        logger.warning(f"[eviction] Failed to list images: {e}")
        raise
    try:
        containers = client.list_containers(include_all=True)
    except REMOVAL_ERRORS as e:
        logger.warning(f"[eviction] Failed to list containers: {e}")
        raise

    removed = []
    last_error = None
    while True:
        disk = probe.measure(check_path)
        if targets_met(disk, free_bytes, free_files):
            return removed

        scoring_time = time.time() if now is None else now
        candidate = find_candidate(images, containers, registry, matcher, scoring_time)
        logger.debug(f"[eviction] Free {format_bytes(disk.bytes_free)} / {disk.files_free} files, candidate {candidate}")

        if candidate is None:
            raise NoCandidatesError() from last_error

        kind, idx, _ = candidate
        if kind == "image":
            target = images.pop(idx)
            last_error = remove_image(client, target)
        else:
            target = containers.pop(idx)
            last_error = remove_cache(client, target)

        if last_error is None:
            removed.append(target)
