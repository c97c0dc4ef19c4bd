"""
state.py
- In-memory registry of tracked images and build-cache containers with their TTL state.
- Reconciled every cycle against the live daemon listing:
    - known objects keep their TTL state
    - new objects are discovered and granted a grace period of DEFAULT_TTL
    - objects gone from the listing are dropped
- Nothing is persisted; a restart treats every object as newly discovered.
"""

import time
from dataclasses import dataclass, field

from loguru import logger

from docker_cleanup.core.constants import CACHE_NAME_MARKERS
from docker_cleanup.lib import scoring


def is_cache_container(*names):
    """True if any name contains every build-cache marker (runner-, -project-, -concurrent-, -cache-)."""
    return any(all(marker in name for marker in CACHE_NAME_MARKERS) for name in names)


@dataclass
class ObjectTTL:
    used: float = 0.0
    expires: float = 0.0

    def mark(self, ttl, now=None):
        """Refresh the TTL: last use is now, expiry moves to now + ttl."""
        self.used = time.time() if now is None else now
        self.expires = self.used + ttl


@dataclass
class ImageInfo:
    id: str
    repo_tags: tuple = ()
    parent_id: str = ""
    size: int = 0
    ttl: ObjectTTL = field(default_factory=ObjectTTL)

    def score(self, now=None):
        return scoring.image_score(self.ttl.expires, self.repo_tags, now)

    @classmethod
    def from_record(cls, record, ttl):
        return cls(id=record.id, repo_tags=record.repo_tags, parent_id=record.parent_id, size=record.size, ttl=ttl)


@dataclass
class CacheInfo:
    id: str
    names: tuple = ()
    size: int = 0
    ttl: ObjectTTL = field(default_factory=ObjectTTL)

    def score(self, now=None):
        return scoring.cache_score(self.ttl.expires, now)

    @classmethod
    def from_record(cls, record, ttl):
        return cls(id=record.id, names=record.names, size=record.size, ttl=ttl)


class Registry:
    """
    Durable TTL state for every known image (by image id) and cache (by container id).

    Owned by the cycle controller and passed into the marker and the eviction engine.
    """

    def __init__(self):
        self.images = {}
        self.caches = {}

    def reconcile_images(self, live_images, default_ttl, now=None):
        """
        Rebuild the image mapping from a live listing, carrying over TTL state of known images.

        Args:
            live_images (list[ImageRecord]): Every image currently known to the daemon.
            default_ttl (float): Grace period in seconds for newly discovered images.
        """
        now = time.time() if now is None else now
        images = {}
        for record in live_images:
            known = self.images.get(record.id)
            if known is not None:
                ttl = known.ttl
            else:
                logger.info(f"[registry] Detected a new image {record.id} {list(record.repo_tags)}")
                ttl = ObjectTTL()
                ttl.mark(default_ttl, now)
            images[record.id] = ImageInfo.from_record(record, ttl)

        for image_id in self.images.keys() - images.keys():
            logger.debug(f"[registry] Image {image_id} is gone, dropping it")
        self.images = images

    def reconcile_containers(self, live_containers, default_ttl, now=None):
        """
        Rebuild the cache mapping from a live container listing.

        Returns:
            list[ContainerRecord]: The non-cache containers, which the marker walks from.
        """
        now = time.time() if now is None else now
        caches = {}
        others = []
        for record in live_containers:
            if not is_cache_container(*record.names):
                others.append(record)
                continue

            known = self.caches.get(record.id)
            if known is not None:
                ttl = known.ttl
            else:
                logger.info(f"[registry] Detected a new cache {record.id} {list(record.names)}")
                ttl = ObjectTTL()
                ttl.mark(default_ttl, now)
            caches[record.id] = CacheInfo.from_record(record, ttl)

        for cache_id in self.caches.keys() - caches.keys():
            logger.debug(f"[registry] Cache {cache_id} is gone, dropping it")
        self.caches = caches
        return others

    def mark_image(self, image_id, ttl, now=None):
        image = self.images.get(image_id)
        if image is None:
            return None
        image.ttl.mark(ttl, now)
        return image

    def mark_cache(self, container_id, ttl, now=None):
        cache = self.caches.get(container_id)
        if cache is None:
            return None
        cache.ttl.mark(ttl, now)
        return cache

    def summary(self, now=None):
        """Tracked objects with their current scores, highest first."""
        now = time.time() if now is None else now
        rows = [
            {"kind": "image", "id": i.id, "tags": list(i.repo_tags), "size": i.size,
             "expires": i.ttl.expires, "score": i.score(now)}
            for i in list(self.images.values())
        ]
        rows += [
            {"kind": "cache", "id": c.id, "names": list(c.names), "size": c.size,
             "expires": c.ttl.expires, "score": c.score(now)}
            for c in list(self.caches.values())
        ]
        rows.sort(key=lambda row: row["score"], reverse=True)
        return rows
