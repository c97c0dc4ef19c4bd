"""
disk_space.py
- Measures free bytes and free inodes on the monitored path.
- Two interchangeable probes, selected once by USE_DF:
    - LocalDiskProbe: os.statvfs on the path as seen by this process
    - ContainerDiskProbe: runs `stat -f` in a short-lived helper container on the daemon host
"""

import os
from dataclasses import dataclass

from docker.errors import DockerException, ImageNotFound
from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from docker_cleanup.core.constants import STAT_FORMAT
from docker_cleanup.core.errors import DiskProbeError


@dataclass(frozen=True)
class DiskSpace:
    bytes_free: int = 0
    bytes_total: int = 0
    files_free: int = 0
    files_total: int = 0


def parse_stat_output(output):
    """
    Parse one line of `stat -f -c "%a %b %s %d %c"` output.

    Returns:
        DiskSpace: byte counts are block counts times the block size.

    Raises:
        DiskProbeError: if the line does not hold exactly five integers.
    """
    if isinstance(output, bytes):
        output = output.decode("utf-8", errors="replace")

    lines = [line for line in output.strip().splitlines() if line.strip()]
    if not lines:
        raise DiskProbeError("empty stat output")

    parts = lines[-1].split()
    if len(parts) != 5:
        raise DiskProbeError(f"unexpected stat output: {lines[-1]!r}")
    try:
        free_blocks, total_blocks, block_size, free_files, total_files = (int(p) for p in parts)
    except ValueError:
        raise DiskProbeError(f"unexpected stat output: {lines[-1]!r}") from None

    return DiskSpace(
        bytes_free=free_blocks * block_size,
        bytes_total=total_blocks * block_size,
        files_free=free_files,
        files_total=total_files,
    )


class LocalDiskProbe:
    def measure(self, path):
        try:
            stat = os.statvfs(path)
        except OSError as e:
            raise DiskProbeError(f"statvfs {path}: {e}") from e
        return DiskSpace(
            bytes_free=stat.f_bavail * stat.f_frsize,
            bytes_total=stat.f_blocks * stat.f_frsize,
            files_free=stat.f_ffree,
            files_total=stat.f_files,
        )


class ContainerDiskProbe:
    """
    Reads disk usage as seen by the Docker daemon host, for setups where this
    process does not share the daemon's filesystem.
    """

    def __init__(self, sdk, image):
        self.sdk = sdk
        self.image = image

    @retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_fixed(2),
        retry=retry_if_exception_type(DockerException),
    )
    def pull_image(self):
        logger.debug(f"[probe] Pulling {self.image}...")
        self.sdk.images.pull(self.image)

    def ensure_image(self):
        try:
            self.sdk.images.get(self.image)
        except ImageNotFound:
            self.pull_image()

    def measure(self, path):
        self.ensure_image()

        container = self.sdk.containers.create(
            self.image,
            entrypoint=["/bin/stat"],
            command=["-f", f"-c{STAT_FORMAT}", path],
        )
        try:
            container.start()
            result = container.wait()
            status = result.get("StatusCode", -1) if isinstance(result, dict) else result
            if status != 0:
                raise DiskProbeError(f"stat exited with status {status} for {path}")
            output = container.logs(stdout=True, stderr=False, tail=1)
            return parse_stat_output(output)
        finally:
            try:
                container.remove(force=True)
            except DockerException as e:
                logger.warning(f"[probe] Failed to remove helper container {container.id}: {e}")


def make_probe(settings, sdk=None):
    """Select the probe strategy for the configured USE_DF flag."""
    if settings.use_df:
        return LocalDiskProbe()
    if sdk is None:
        raise ValueError("the container probe needs a Docker SDK client")
    return ContainerDiskProbe(sdk, settings.disk_space_image)
