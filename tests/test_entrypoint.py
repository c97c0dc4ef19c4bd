import pytest

from docker_cleanup.cli import entrypoint

from conftest import GB, make_image


@pytest.fixture
def fake_daemon(monkeypatch, docker_client):
    monkeypatch.setattr(entrypoint, "connect", lambda settings: docker_client)
    monkeypatch.setattr(entrypoint, "make_probe", lambda settings, sdk: docker_client)
    return docker_client


def test_overrides_only_include_given_flags():
    args = entrypoint.build_parser().parse_args(["once", "--low-free-space", "5GB", "--use-df", "--no-api"])
    assert entrypoint.overrides_from_args(args) == {
        "low_free_space": "5GB",
        "use_df": True,
        "api_enabled": False,
    }


def test_default_command_is_run():
    assert entrypoint.build_parser().parse_args([]).command == "run"


def test_invalid_option():
    assert entrypoint.main(["once", "--low-free-space", "lots"]) == 2


def test_once_nothing_to_free(fake_daemon, capsys):
    fake_daemon.free_space = 10 * GB
    fake_daemon.free_files = 10 ** 6

    assert entrypoint.main(["once", "--ttl", "0"]) == 0
    assert "Nothing to free" in capsys.readouterr().out


def test_once_evicts(fake_daemon, capsys):
    fake_daemon.images = [make_image("old", size=3 * GB)]
    fake_daemon.free_files = 10 ** 6

    assert entrypoint.main(["once", "--ttl", "0", "--low-free-space", "1GB", "--expected-free-space", "2GB"]) == 0
    assert "Removed 1 objects" in capsys.readouterr().out
    assert fake_daemon.removed_images == ["old"]


def test_once_failure(fake_daemon):
    assert entrypoint.main(["once", "--ttl", "0"]) == 1


def test_disk_space(fake_daemon, capsys):
    fake_daemon.free_space = GB
    fake_daemon.total_space = 4 * GB
    fake_daemon.free_files = 10
    fake_daemon.total_files = 20

    assert entrypoint.main(["disk-space", "--check-path", "/var/lib/docker"]) == 0
    out = capsys.readouterr().out
    assert "/var/lib/docker" in out
    assert "10 of 20" in out


def test_registry_marks_protected(fake_daemon, capsys):
    fake_daemon.images = [make_image("gitlab/gitlab-runner:latest"), make_image("ruby:3")]

    assert entrypoint.main(["registry"]) == 0
    out = capsys.readouterr().out
    assert "gitlab/gitlab-runner:latest (protected)" in out
    assert "ruby:3" in out
