"""
constants.py
- Project-wide constants shared across the registry, marker, and eviction logic.
"""

# --- Scoring ---
DANGLING_IMAGE_BONUS = 1000  # added to expired images without a repo:tag
NO_CANDIDATE_SCORE = -1

# --- Cache Detection ---
# A container is a build cache when one of its names contains all of these.
CACHE_NAME_MARKERS = ("runner-", "-project-", "-concurrent-", "-cache-")

# --- Protected Images ---
INTERNAL_IMAGES = (
    "gitlab/gitlab-runner:*",
    "quay.io/gitlab-runner:*",
    "quay.io/gitlab-runner-*:*",
)

# Reported by older daemons for images without any tag
NONE_TAG = "<none>:<none>"

# --- Disk Probe ---
DEFAULT_DISK_SPACE_IMAGE = "alpine"
STAT_FORMAT = "%a %b %s %d %c"  # free blocks, total blocks, block size, free inodes, total inodes

# --- Watcher ---
DEBOUNCE_TIME = 2  # seconds between reloads of the protected images file
