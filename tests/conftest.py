import pytest
from docker.errors import APIError, NotFound

from docker_cleanup.core.config import Settings
from docker_cleanup.core.docker_client import ContainerDetail, ContainerRecord, ImageRecord
from docker_cleanup.core.state import Registry
from docker_cleanup.lib.disk_space import DiskSpace
from docker_cleanup.lib.protection import ImageMatcher

KB = 1000
MB = 1000 * KB
GB = 1000 * MB
TB = 1000 * GB

CACHE_NAME = "runner-RID-project-PID-concurrent-CID-cache-{}"


class FakeDocker:
    """
    In-memory Docker daemon. Removing an object frees its size in bytes
    and size // 4096 inodes. Also serves as the disk probe.
    """

    def __init__(self):
        self.sdk = None
        self.error = None
        self.remove_error = None
        self.probe_error = None
        self.images = []
        self.containers = []
        self.volumes_from = {}
        self.links = {}
        self.free_space = 0
        self.total_space = 0
        self.free_files = 0
        self.total_files = 0
        self.removed_images = []
        self.removed_containers = []
        self.attempted = []
        self.fail_ids = set()
        self.inspected = []
        self.probe_calls = 0
        self.pings = 0
        self.closed = False

    def ping(self):
        self.pings += 1
        if self.error:
            raise self.error
        return True

    def close(self):
        self.closed = True

    def list_images(self, include_all=False):
        if self.error:
            raise self.error
        return list(self.images)

    def list_containers(self, include_all=True):
        if self.error:
            raise self.error
        return list(self.containers)

    def inspect_container(self, container_id):
        self.inspected.append(container_id)
        for container in self.containers:
            if container.id == container_id or container_id in container.names:
                return ContainerDetail(
                    id=container.id,
                    name=container.names[0] if container.names else container.id,
                    image=container.image,
                    volumes_from=list(self.volumes_from.get(container.id, [])),
                    links=list(self.links.get(container.id, [])),
                )
        raise NotFound(f"No such container: {container_id}")

    def check_removal(self, object_id):
        self.attempted.append(object_id)
        if self.error or self.remove_error:
            raise self.error or self.remove_error
        if object_id in self.fail_ids:
            raise APIError(f"conflict: unable to remove {object_id}")

    def remove_image(self, image_id):
        self.check_removal(image_id)
        for image in self.images:
            if image.id == image_id:
                self.free_space += image.size
                self.free_files += image.size // 4096
        self.removed_images.append(image_id)

    def remove_container(self, container_id, force=True, remove_volumes=True):
        self.check_removal(container_id)
        assert force and remove_volumes
        for container in self.containers:
            if container.id == container_id:
                self.free_space += container.size
                self.free_files += container.size // 4096
        self.removed_containers.append(container_id)

    def measure(self, path):
        self.probe_calls += 1
        if self.probe_error or self.error:
            raise self.probe_error or self.error
        return DiskSpace(
            bytes_free=self.free_space,
            bytes_total=self.total_space,
            files_free=self.free_files,
            files_total=self.total_files,
        )


def make_image(name, parent="", size=0, tags=None):
    return ImageRecord(id=name, repo_tags=(name,) if tags is None else tuple(tags), parent_id=parent, size=size)


def make_container(name, image, size=0):
    return ContainerRecord(id=name, names=(name,), image=image, size=size)


def make_cache(cache_id, size=0):
    return make_container(CACHE_NAME.format(cache_id), "cache", size)


@pytest.fixture
def docker_client():
    return FakeDocker()


@pytest.fixture
def registry():
    return Registry()


@pytest.fixture
def matcher():
    return ImageMatcher()


@pytest.fixture
def settings():
    return Settings(
        check_path="/",
        low_free_space=MB,
        expected_free_space=GB,
        low_free_files_count=1000,
        expected_free_files_count=10000,
        default_ttl=0,
        api_enabled=False,
    )
