import pytest
import simrpc

import stubserver


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """ Keep the user's own configuration and environment out of the tests.
    """

    for variable in simrpc.config.environment.values():
        monkeypatch.delenv(variable, raising=False)

    monkeypatch.setenv('SIMRPC_HOME', str(tmp_path))
    simrpc.config.directory.found = None

    yield tmp_path

    simrpc.config.directory.found = None


@pytest.fixture
def stub_server():

    server = stubserver.StubServer()
    server.start()

    yield server

    server.stop()


@pytest.fixture
def client(stub_server):

    client = simrpc.connect('unittest', '127.0.0.1', stub_server.rpc_port, stub_server.stream_port)

    yield client

    client.close()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
