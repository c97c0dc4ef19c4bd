from unittest.mock import MagicMock

from docker_cleanup.core.docker_client import (
    DockerClient,
    container_detail,
    container_record,
    image_record,
)


def test_image_record_drops_none_tag():
    record = image_record({"Id": "sha256:1", "RepoTags": ["<none>:<none>"], "ParentId": "", "Size": 5})
    assert record.repo_tags == ()
    assert record.size == 5

    record = image_record({"Id": "sha256:2", "RepoTags": None, "ParentId": "sha256:1"})
    assert record.repo_tags == ()
    assert record.parent_id == "sha256:1"
    assert record.size == 0


def test_container_record_from_listing():
    record = container_record({
        "Id": "c1",
        "Names": ["/runner-RID-project-PID-concurrent-CID-cache-1"],
        "Image": "ruby:3",
        "ImageID": "sha256:ruby",
    })
    assert record.names == ("runner-RID-project-PID-concurrent-CID-cache-1",)
    assert record.image == "sha256:ruby"


def test_container_detail_references():
    detail = container_detail({
        "Id": "c1",
        "Name": "/web",
        "Image": "sha256:app",
        "HostConfig": {"VolumesFrom": ["data:ro", "cache"], "Links": ["/db:/web/db"]},
    })
    assert detail.name == "web"
    assert detail.image == "sha256:app"
    assert detail.volumes_from == ["data", "cache"]
    assert detail.links == ["db"]


def test_container_detail_without_host_config():
    detail = container_detail({"Id": "c1", "Name": "/web", "Image": "sha256:app", "HostConfig": None})
    assert detail.volumes_from == []
    assert detail.links == []


def test_client_calls_the_sdk():
    sdk = MagicMock()
    image = MagicMock(attrs={"Id": "sha256:1", "RepoTags": ["ruby:3"], "ParentId": "", "Size": 1})
    sdk.images.list.return_value = [image]
    sdk.containers.get.return_value.attrs = {"Id": "c1", "Name": "/web", "Image": "sha256:1", "HostConfig": {}}
    client = DockerClient(sdk)

    assert [i.id for i in client.list_images(include_all=True)] == ["sha256:1"]
    sdk.images.list.assert_called_once_with(all=True)

    client.list_containers()
    sdk.api.containers.assert_called_once_with(all=True, size=True)

    assert client.inspect_container("c1").name == "web"

    client.remove_image("sha256:1")
    sdk.images.remove.assert_called_once_with(image="sha256:1")

    client.remove_container("c1")
    sdk.api.remove_container.assert_called_once_with("c1", v=True, force=True)


def test_listed_containers_carry_their_size():
    sdk = MagicMock()
    sdk.api.containers.return_value = [{
        "Id": "c1",
        "Names": ["/runner-RID-project-PID-concurrent-CID-cache-1"],
        "Image": "alpine",
        "ImageID": "sha256:alpine",
        "SizeRw": 4096,
    }]

    [record] = DockerClient(sdk).list_containers()

    assert record.size == 4096
    assert record.image == "sha256:alpine"
