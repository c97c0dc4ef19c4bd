"""
metrics.py
- Process-wide counters for cleanup cycles and evictions.
- Rendered as Prometheus text by the /metrics endpoint in main.py.
"""

# --- Prometheus Metrics ---
cleanup_cycles_total = 0
cleanup_cycle_errors_total = 0
cleanup_evictions_total = 0
cleanup_images_removed_total = 0
cleanup_caches_removed_total = 0
cleanup_removal_errors_total = 0
cleanup_bytes_freed_total = 0
cleanup_last_duration_seconds = 0.0
tracked_images = 0
tracked_caches = 0
docker_connected = 0


def record_removal(kind, ok):
    global cleanup_images_removed_total, cleanup_caches_removed_total, cleanup_removal_errors_total
    if not ok:
        cleanup_removal_errors_total += 1
    elif kind == "image":
        cleanup_images_removed_total += 1
    else:
        cleanup_caches_removed_total += 1


def record_cycle(duration, ok, evicted=False, bytes_freed=0):
    global cleanup_cycles_total, cleanup_cycle_errors_total, cleanup_evictions_total
    global cleanup_last_duration_seconds, cleanup_bytes_freed_total
    cleanup_cycles_total += 1
    cleanup_last_duration_seconds = duration
    if not ok:
        cleanup_cycle_errors_total += 1
    if evicted:
        cleanup_evictions_total += 1
    if bytes_freed > 0:
        cleanup_bytes_freed_total += bytes_freed


def record_registry(registry):
    global tracked_images, tracked_caches
    tracked_images = len(registry.images)
    tracked_caches = len(registry.caches)


def set_connected(connected):
    global docker_connected
    docker_connected = 1 if connected else 0


def render():
    return f"""# HELP cleanup_cycles_total Total cleanup cycles run
# TYPE cleanup_cycles_total counter
cleanup_cycles_total {cleanup_cycles_total}
# HELP cleanup_cycle_errors_total Total cleanup cycles that failed
# TYPE cleanup_cycle_errors_total counter
cleanup_cycle_errors_total {cleanup_cycle_errors_total}
# HELP cleanup_evictions_total Total cycles that had to evict images or caches
# TYPE cleanup_evictions_total counter
cleanup_evictions_total {cleanup_evictions_total}
# HELP cleanup_images_removed_total Total images removed
# TYPE cleanup_images_removed_total counter
cleanup_images_removed_total {cleanup_images_removed_total}
# HELP cleanup_caches_removed_total Total cache containers removed
# TYPE cleanup_caches_removed_total counter
cleanup_caches_removed_total {cleanup_caches_removed_total}
# HELP cleanup_removal_errors_total Total failed image or cache removals
# TYPE cleanup_removal_errors_total counter
cleanup_removal_errors_total {cleanup_removal_errors_total}
# HELP cleanup_bytes_freed_total Total bytes reclaimed by evictions
# TYPE cleanup_bytes_freed_total counter
cleanup_bytes_freed_total {cleanup_bytes_freed_total}
# HELP cleanup_last_duration_seconds Duration of the last cleanup cycle in seconds
# TYPE cleanup_last_duration_seconds gauge
cleanup_last_duration_seconds {cleanup_last_duration_seconds}
# HELP cleanup_tracked_images Images currently tracked
# TYPE cleanup_tracked_images gauge
cleanup_tracked_images {tracked_images}
# HELP cleanup_tracked_caches Cache containers currently tracked
# TYPE cleanup_tracked_caches gauge
cleanup_tracked_caches {tracked_caches}
# HELP cleanup_docker_connected 1 if the Docker daemon is reachable, 0 otherwise
# TYPE cleanup_docker_connected gauge
cleanup_docker_connected {docker_connected}
"""
