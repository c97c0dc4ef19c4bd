import asyncio

from docker.errors import DockerException

from docker_cleanup.lib import metrics
from docker_cleanup.lib.cycle import CycleController
from docker_cleanup.runner.cleanup import CleanupLoop

from conftest import GB, FakeDocker


class Connector:
    def __init__(self, *clients, error=None):
        self.clients = list(clients)
        self.error = error
        self.calls = 0

    def __call__(self, settings):
        self.calls += 1
        if self.error:
            raise self.error
        return self.clients.pop(0)


def make_loop(settings, matcher, connector):
    controller = CycleController(None, None, settings, matcher)
    loop = CleanupLoop(controller, connector=connector)
    # The fake daemon doubles as its own disk probe.
    loop.probe_factory = lambda s, sdk: loop.client
    return loop


def test_step_binds_client_and_probe(settings, matcher, docker_client):
    docker_client.free_space = 2 * GB
    docker_client.free_files = 100000
    loop = make_loop(settings, matcher, Connector(docker_client))

    assert loop.step() == settings.check_interval
    assert loop.controller.client is docker_client
    assert loop.controller.probe is docker_client
    assert docker_client.probe_calls == 1
    assert metrics.docker_connected == 1
    assert loop.last_error is None


def test_connect_failure_waits_retry_interval(settings, matcher):
    connector = Connector(error=DockerException("daemon is down"))
    loop = make_loop(settings, matcher, connector)

    assert loop.step() == settings.retry_interval
    assert isinstance(loop.last_error, DockerException)
    assert metrics.docker_connected == 0
    assert loop.controller.client is None


def test_cycle_failure_waits_retry_interval(settings, matcher, docker_client):
    docker_client.probe_error = DockerException("stat failed")
    loop = make_loop(settings, matcher, Connector(docker_client))

    assert loop.step() == settings.retry_interval
    assert loop.last_error is docker_client.probe_error


def test_reconnects_after_lost_connection(settings, matcher, docker_client):
    docker_client.free_space = 2 * GB
    docker_client.free_files = 100000
    replacement = FakeDocker()
    replacement.free_space = 2 * GB
    replacement.free_files = 100000
    connector = Connector(docker_client, replacement)
    loop = make_loop(settings, matcher, connector)

    assert loop.step() == settings.check_interval
    docker_client.error = DockerException("connection reset")

    assert loop.step() == settings.check_interval
    assert docker_client.closed
    assert connector.calls == 2
    assert loop.controller.client is replacement


def test_registry_survives_reconnect(settings, matcher, docker_client):
    docker_client.free_space = 2 * GB
    docker_client.free_files = 100000
    loop = make_loop(settings, matcher, Connector(docker_client))
    registry = loop.controller.registry

    loop.step()
    loop.disconnect()
    loop.connector = Connector(docker_client)
    docker_client.closed = False
    loop.step()

    assert loop.controller.registry is registry


def test_run_stops_and_disconnects(settings, matcher, docker_client):
    docker_client.free_space = 2 * GB
    docker_client.free_files = 100000
    loop = make_loop(settings, matcher, Connector(docker_client))
    steps = []
    real_step = loop.step

    def step_once():
        steps.append(1)
        real_step()
        loop.stop()
        return 0

    loop.step = step_once
    asyncio.run(loop.run())

    assert len(steps) == 1
    assert docker_client.closed
    assert loop.client is None
