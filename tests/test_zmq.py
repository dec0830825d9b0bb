import threading
import pytest
import simrpc
import zmq

from simrpc.transport import zmq as transport


@pytest.fixture
def router():

    socket = transport.zmq_context.socket(zmq.ROUTER)
    socket.setsockopt(zmq.LINGER, 0)
    socket.setsockopt(zmq.RCVTIMEO, 5000)
    port = socket.bind_to_random_port('tcp://127.0.0.1')

    yield socket, port

    socket.close()


def test_backend_selection():

    channel = simrpc.transport.channel('127.0.0.1', 1234, 'zmq')
    assert isinstance(channel, transport.Channel)
    assert channel.is_open == False

    with pytest.raises(ValueError):
        simrpc.transport.backend('carrier-pigeon')


def test_request_response(router):

    socket, port = router

    channel = simrpc.transport.channel('127.0.0.1', port, 'zmq')
    channel.open()

    try:
        channel.send(b'hello')
        identity, payload = socket.recv_multipart()
        assert payload == b'hello'

        socket.send_multipart([identity, b'world'])
        assert channel.recv() == b'world'
    finally:
        channel.close()

    assert channel.is_open == False

    with pytest.raises(simrpc.ConnectionClosed):
        channel.send(b'again')


def test_close_unblocks(router):

    socket, port = router

    channel = simrpc.transport.channel('127.0.0.1', port, 'zmq')
    channel.open()
    raised = list()

    def pending():
        try:
            channel.recv()
        except Exception as e:
            raised.append(e)

    thread = threading.Thread(target=pending)
    thread.start()

    channel.close()
    thread.join(5)

    assert thread.is_alive() == False
    assert len(raised) == 1
    assert isinstance(raised[0], simrpc.ConnectionClosed)



def test_recv_timeout(router):

    socket, port = router

    channel = simrpc.transport.channel('127.0.0.1', port, 'zmq')
    channel.open()

    try:
        with pytest.raises(simrpc.ConnectionError) as caught:
            channel.recv(timeout=0.2)

        assert isinstance(caught.value, simrpc.ConnectionClosed) == False
        assert 'no response received' in str(caught.value)
        assert channel.is_open == True
    finally:
        channel.close()


def test_peer_lost(router):

    socket, port = router

    channel = simrpc.transport.channel('127.0.0.1', port, 'zmq')
    channel.open()

    try:
        channel.send(b'hello')
        identity, payload = socket.recv_multipart()
        socket.send_multipart([identity, b'world'])
        assert channel.recv() == b'world'

        socket.close()

        with pytest.raises(simrpc.ConnectionClosed):
            channel.recv(timeout=5)

        assert channel.is_open == False
    finally:
        channel.close()


def test_no_server():

    unused = transport.zmq_context.socket(zmq.ROUTER)
    port = unused.bind_to_random_port('tcp://127.0.0.1')
    unused.close(linger=0)

    client = simrpc.Client('unittest', '127.0.0.1', port, port, transport='zmq')
    client.handshake_timeout = 0.3

    with pytest.raises(simrpc.ConnectionError) as caught:
        client.connect()

    assert 'no response received' in str(caught.value)
    assert client.state == simrpc.State.CLOSED


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
