"""
config_loader.py
- Loads and previews the protected-images pattern file.
- One shell-glob pattern per line; blank lines and '#' comments are ignored.
"""

import os

from loguru import logger


def parse_patterns(text):
    patterns = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        patterns.append(line)
    return patterns


def load_patterns(path):
    """Load glob patterns from a file. Returns [] if the file is missing or unreadable."""
    if not path:
        return []
    try:
        with open(path, "r") as f:
            return parse_patterns(f.read())
    except FileNotFoundError:
        logger.warning(f"[config] Protected images file not found: {path}")
    except OSError as e:
        logger.error(f"[config] Failed to read {path}: {e}")
    return []


def preview_file(path, name=None):
    """
    Log a human-readable preview of a config file for debugging.
    Typically used during startup to verify the file is mounted.
    """
    if not path or not os.path.exists(path):
        return

    try:
        with open(path, "r") as f:
            contents = f.read()
        logger.info(f"\n📄 Loaded {name or path}:\n" + "\n".join(f"│ {line}" for line in contents.strip().splitlines()))
    except OSError as e:
        logger.error(f"[config] Could not preview {path}: {e}")
