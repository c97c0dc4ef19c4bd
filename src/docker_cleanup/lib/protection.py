"""
protection.py
- Decides which images are internal and must never be evicted.
- Patterns are shell globs matched against each repository:tag of an image;
  a match on any tag protects the whole image.
- Built-in patterns come first, followed by those loaded from PROTECTED_IMAGES_FILE.
"""

from fnmatch import fnmatchcase

from loguru import logger

from docker_cleanup.core.config_loader import load_patterns
from docker_cleanup.core.constants import INTERNAL_IMAGES


class ImageMatcher:
    def __init__(self, patterns=INTERNAL_IMAGES, path=None):
        self.builtin = tuple(patterns)
        self.path = path
        self.patterns = self.builtin
        if path:
            self.reload()

    def reload(self):
        """Re-read the pattern file. The new pattern tuple replaces the old one in a single assignment."""
        extra = tuple(load_patterns(self.path))
        self.patterns = self.builtin + extra
        logger.info(f"[protection] {len(self.patterns)} protected image patterns ({len(extra)} from {self.path})")

    def match(self, tags):
        """Return the first pattern matching any of the tags, or None."""
        for tag in tags:
            for pattern in self.patterns:
                if fnmatchcase(tag, pattern):
                    return pattern
        return None

    def is_protected(self, image):
        return self.match(image.repo_tags) is not None
