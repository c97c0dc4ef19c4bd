"""
scoring.py
- Pure eviction-priority functions over TTL state.
- Higher score means more overdue; a non-positive score means the object is still within its TTL.
"""

import math
import time

from docker_cleanup.core.constants import DANGLING_IMAGE_BONUS


def ttl_score(expires, now=None):
    """Whole seconds elapsed since `expires` (negative while not yet expired)."""
    now = time.time() if now is None else now
    return int(math.floor(now - expires))


def image_score(expires, repo_tags, now=None):
    """
    Score an image. Expired images without any repo:tag get DANGLING_IMAGE_BONUS
    so they go before expired tagged images.
    """
    score = ttl_score(expires, now)
    if score > 0 and not repo_tags:
        score += DANGLING_IMAGE_BONUS
    return score


def cache_score(expires, now=None):
    return ttl_score(expires, now)
