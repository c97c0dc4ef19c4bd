"""
docker_client.py
- Wraps the Docker SDK client behind the small surface the cleanup engine consumes.
- Converts SDK objects into plain records (images, containers, inspected containers).
- Connection is (re)established by the outer loop; nothing here retries.
"""

from dataclasses import dataclass, field
from typing import List

import docker
from loguru import logger

from docker_cleanup.core.constants import NONE_TAG


@dataclass(frozen=True)
class ImageRecord:
    id: str
    repo_tags: tuple = ()
    parent_id: str = ""
    size: int = 0


@dataclass(frozen=True)
class ContainerRecord:
    id: str
    names: tuple = ()
    image: str = ""
    size: int = 0


@dataclass
class ContainerDetail:
    id: str
    name: str = ""
    image: str = ""
    volumes_from: List[str] = field(default_factory=list)
    links: List[str] = field(default_factory=list)


def clean_tags(tags):
    return tuple(tag for tag in (tags or ()) if tag and tag != NONE_TAG)


def strip_name(name):
    return name[1:] if name.startswith("/") else name


def container_ref(value):
    """Return the container part of a 'container:alias' or 'container:ro' reference."""
    return strip_name(value.split(":", 1)[0])


def image_record(attrs):
    return ImageRecord(
        id=attrs["Id"],
        repo_tags=clean_tags(attrs.get("RepoTags")),
        parent_id=attrs.get("ParentId") or "",
        size=attrs.get("Size") or 0,
    )


def container_record(attrs):
    names = attrs.get("Names")
    if names is None and attrs.get("Name"):
        names = [attrs["Name"]]
    return ContainerRecord(
        id=attrs["Id"],
        names=tuple(strip_name(n) for n in (names or ())),
        image=attrs.get("ImageID") or attrs.get("Image") or "",
        size=attrs.get("SizeRw") or 0,
    )


def container_detail(attrs):
    host_config = attrs.get("HostConfig") or {}
    return ContainerDetail(
        id=attrs["Id"],
        name=strip_name(attrs.get("Name") or ""),
        image=attrs.get("Image") or "",
        volumes_from=[container_ref(v) for v in host_config.get("VolumesFrom") or [] if v],
        links=[container_ref(link) for link in host_config.get("Links") or [] if link],
    )


class DockerClient:
    """
    Runtime-client collaborator used by the registry, marker and eviction engine.

    Every call blocks; SDK exceptions (docker.errors.DockerException and
    subclasses) propagate to the caller.
    """

    def __init__(self, sdk):
        self.sdk = sdk

    def ping(self):
        return self.sdk.ping()

    def list_images(self, include_all=False):
        return [image_record(image.attrs) for image in self.sdk.images.list(all=include_all)]

    def list_containers(self, include_all=True):
        # The high-level listing never asks the daemon for SizeRw.
        return [container_record(attrs) for attrs in self.sdk.api.containers(all=include_all, size=True)]

    def inspect_container(self, container_id):
        """
        Returns:
            ContainerDetail: image id plus volumes-from and link references.

        Raises:
            docker.errors.NotFound: if the container no longer exists.
        """
        return container_detail(self.sdk.containers.get(container_id).attrs)

    def remove_image(self, image_id):
        self.sdk.images.remove(image=image_id)

    def remove_container(self, container_id, force=True, remove_volumes=True):
        self.sdk.api.remove_container(container_id, v=remove_volumes, force=force)

    def close(self):
        try:
            self.sdk.close()
        except Exception as e:
            logger.debug(f"[docker] Error while closing client: {e}")


def connect(settings):
    """
    Create a DockerClient from the environment (DOCKER_HOST, DOCKER_TLS_VERIFY, DOCKER_CERT_PATH).

    Raises:
        docker.errors.DockerException: if the daemon cannot be reached.
    """
    sdk = docker.from_env(version=settings.docker_api_version, timeout=settings.docker_timeout)
    try:
        sdk.ping()
    except Exception:
        sdk.close()
        raise
    logger.info(f"[docker] Connected to daemon (API {sdk.api.api_version})")
    return DockerClient(sdk)

