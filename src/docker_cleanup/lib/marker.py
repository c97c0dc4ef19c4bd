"""
marker.py
- Mark phase of the cleanup cycle.
- Walks from every live non-cache container through its image ancestry and its
  volumes-from / links relations, refreshing the TTL of every image and cache reached.
- Containers are inspected live; a failed inspection skips that branch only.
"""

import time

from docker.errors import DockerException
from loguru import logger

from docker_cleanup.core.state import is_cache_container


class MarkPass:
    """
    One marking pass. Tracks visited containers and images so cyclic
    link / volume graphs terminate.
    """

    def __init__(self, client, registry, ttl, now=None):
        self.client = client
        self.registry = registry
        self.ttl = ttl
        self.now = time.time() if now is None else now
        self.visited_containers = set()
        self.visited_images = set()
        self.marked_images = 0
        self.marked_caches = 0

    def mark_image_chain(self, image_id):
        """Mark an image and every tracked ancestor until the chain ends or leaves the registry."""
        while image_id and image_id not in self.visited_images:
            self.visited_images.add(image_id)
            image = self.registry.mark_image(image_id, self.ttl, self.now)
            if image is None:
                return
            logger.debug(f"[marker] Marked image {image_id} {list(image.repo_tags)}")
            self.marked_images += 1
            image_id = image.parent_id

    def mark_container(self, detail):
        logger.debug(f"[marker] Visiting container {detail.name} {detail.id} image={detail.image}")
        self.visited_containers.add(detail.id)

        self.mark_image_chain(detail.image)

        if is_cache_container(detail.name):
            if self.registry.mark_cache(detail.id, self.ttl, self.now) is not None:
                self.marked_caches += 1
            return

        for other in detail.volumes_from:
            self.mark_container_id(other)
        for other in detail.links:
            self.mark_container_id(other)

    def mark_container_id(self, container_id):
        if not container_id or container_id in self.visited_containers:
            return
        self.visited_containers.add(container_id)

        try:
            detail = self.client.inspect_container(container_id)
        except DockerException as e:
            logger.warning(f"[marker] Failed to inspect container {container_id}: {e}")
            return

        if detail.id != container_id and detail.id in self.visited_containers:
            return
        self.mark_container(detail)


def mark_reachable(client, registry, containers, ttl, now=None):
    """
    Run the mark phase from the given non-cache containers.

    Args:
        client: Runtime client providing inspect_container().
        registry (Registry): TTL state to refresh.
        containers (list[ContainerRecord]): Live non-cache containers to walk from.
        ttl (float): Seconds added to the mark time.

    Returns:
        MarkPass: The finished pass (counters and visited sets).
    """
    mark_pass = MarkPass(client, registry, ttl, now)
    for container in containers:
        mark_pass.mark_container_id(container.id)
    logger.debug(
        f"[marker] Visited {len(mark_pass.visited_containers)} containers, "
        f"marked {mark_pass.marked_images} images and {mark_pass.marked_caches} caches"
    )
    return mark_pass
