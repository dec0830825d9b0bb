import threading
import time
import pytest
import simrpc

from simrpc.protocol import codec
from simrpc.protocol import message
from simrpc.protocol import types
from simrpc.stream import StreamManager

from stubserver import wait_for


class FakeCore:
    """ Records the stream management calls instead of invoking them.
    """

    def __init__(self):
        self.next_id = 1
        self.calls = list()


    def add_stream(self, call, start=True):
        id = self.next_id
        self.next_id += 1
        self.calls.append(('add', id, start))
        return id


    def start_stream(self, id):
        self.calls.append(('start', id))


    def remove_stream(self, id):
        self.calls.append(('remove', id))


    def set_stream_rate(self, id, rate):
        self.calls.append(('rate', id, rate))



def update(id, value, error=None):
    result = message.ProcedureResult(value=value, error=error)
    return message.StreamUpdate(results=[message.StreamResult(id=id, result=result)])


def manager():
    return StreamManager(FakeCore(), simrpc.ExceptionRegistry(), channel=object())


def test_added_dormant_then_started():

    streams = manager()
    call = simrpc.build_call('Svc', 'Double', [simrpc.encode(5)])

    stream = streams.add_stream(call, types.SInt64)

    assert streams.core.calls == [('add', 1, False), ('start', 1)]
    assert stream.id in streams
    assert stream.started == True

    dormant = streams.add_stream(call, types.SInt64, start=False)
    assert streams.core.calls[-1] == ('add', 2, False)
    assert dormant.started == False


def test_freshest_value():

    streams = manager()
    stream = streams.add_stream(simrpc.build_call('Svc', 'Counter'), types.SInt32)

    for count in range(1, 101):
        streams._update(update(stream.id, codec.encode(count, types.SInt32)))

        if count % 10 == 0:
            assert stream.get() == count

    assert stream.get() == 100
    assert stream() == 100


def test_raw_bytes_without_type():

    streams = manager()
    stream = streams.add_stream(simrpc.build_call('Svc', 'Raw'))

    streams._update(update(stream.id, b'\x01\x02'))
    assert stream.get() == b'\x01\x02'


def test_unknown_id_ignored():

    streams = manager()
    stream = streams.add_stream(simrpc.build_call('Svc', 'Counter'), types.SInt32)

    streams._update(update(99, codec.encode(1, types.SInt32)))

    assert 99 not in streams
    assert len(streams) == 1

    with pytest.raises(simrpc.StreamError):
        streams.get(99)


def test_cached_error():

    class BarError(simrpc.RPCError):
        pass

    streams = manager()
    streams.registry.add('Svc', 'BarError', BarError)
    stream = streams.add_stream(simrpc.build_call('Svc', 'Counter'), types.SInt32)

    error = message.Error(service='Svc', name='BarError', description='bar happened')
    streams._update(update(stream.id, b'', error))

    with pytest.raises(BarError):
        stream.get()

    streams._update(update(stream.id, codec.encode(3, types.SInt32)))
    assert stream.get() == 3


def test_remove():

    streams = manager()
    stream = streams.add_stream(simrpc.build_call('Svc', 'Counter'), types.SInt32)
    streams._update(update(stream.id, codec.encode(1, types.SInt32)))

    stream.remove()

    assert streams.core.calls[-1] == ('remove', stream.id)

    with pytest.raises(simrpc.StreamError):
        stream.get()

    # A late update for the removed stream must not bring it back.

    streams._update(update(stream.id, codec.encode(2, types.SInt32)))
    assert stream.id not in streams

    with pytest.raises(simrpc.StreamError):
        stream.remove()


def test_readded_id_not_stale():

    streams = manager()
    first = streams.attach(1, type=types.SInt32)
    second = streams.attach(1, type=types.SInt32)

    streams._update(update(1, codec.encode(1, types.SInt32)))
    assert first.get() == 1
    assert second.get() == 1

    # The server may hand out the same id again once the stream is gone;
    # the version count starts over, and must not revive the old value.

    second.remove()
    third = streams.attach(1, type=types.SInt32)
    streams._update(update(1, codec.encode(5, types.SInt32)))

    assert third.get() == 5
    assert first.get() == 5
    assert second.get() == 5


def test_rate():

    streams = manager()
    stream = streams.add_stream(simrpc.build_call('Svc', 'Counter'), types.SInt32)

    assert stream.rate == 0
    stream.rate = 5
    assert stream.rate == 5.0
    assert streams.core.calls[-1] == ('rate', stream.id, 5.0)


def test_wait_timeout():

    streams = manager()
    stream = streams.add_stream(simrpc.build_call('Svc', 'Counter'), types.SInt32)

    before = time.monotonic()
    assert stream.wait(timeout=0.2) == False
    assert time.monotonic() - before >= 0.2


def test_wait_wakes():

    streams = manager()
    stream = streams.add_stream(simrpc.build_call('Svc', 'Counter'), types.SInt32)
    outcome = list()

    def waiter():
        outcome.append(stream.wait(timeout=5))

    thread = threading.Thread(target=waiter)
    thread.start()
    time.sleep(0.1)

    streams._update(update(stream.id, codec.encode(1, types.SInt32)))
    thread.join(5)

    assert outcome == [True]


def test_close_wakes_waiters():

    streams = manager()
    stream = streams.add_stream(simrpc.build_call('Svc', 'Counter'), types.SInt32)
    raised = list()

    def waiter():
        try:
            stream.get()
        except Exception as e:
            raised.append(e)

    threads = [threading.Thread(target=waiter) for count in range(3)]
    for thread in threads:
        thread.start()

    time.sleep(0.1)
    streams.close()

    for thread in threads:
        thread.join(5)
        assert thread.is_alive() == False

    assert len(raised) == 3
    for exception in raised:
        assert isinstance(exception, simrpc.ConnectionClosed)

    with pytest.raises(simrpc.ConnectionClosed):
        streams.add_stream(simrpc.build_call('Svc', 'Counter'))


def test_callbacks():

    streams = manager()
    stream = streams.add_stream(simrpc.build_call('Svc', 'Counter'), types.SInt32)

    seen = list()
    done = threading.Event()
    reader = threading.current_thread()
    threads = list()

    def callback(value):
        seen.append(value)
        threads.append(threading.current_thread())
        if value == 3:
            done.set()

    stream.add_callback(callback)

    for count in (1, 2, 3):
        streams._update(update(stream.id, codec.encode(count, types.SInt32)))

    assert done.wait(5)

    # Updates may be coalesced, but the last value is always delivered.

    assert seen[-1] == 3
    assert reader not in threads

    stream.remove_callback(callback)
    streams._update(update(stream.id, codec.encode(4, types.SInt32)))
    time.sleep(0.1)
    assert seen[-1] == 3


def test_failing_callback():

    streams = manager()
    stream = streams.add_stream(simrpc.build_call('Svc', 'Counter'), types.SInt32)

    done = threading.Event()

    def broken(value):
        raise RuntimeError('broken callback')

    def working(value):
        done.set()

    stream.add_callback(broken)
    stream.add_callback(working)

    streams._update(update(stream.id, codec.encode(1, types.SInt32)))

    assert done.wait(5)


def test_no_channel():

    streams = StreamManager(FakeCore(), simrpc.ExceptionRegistry())

    assert streams.enabled == False

    with pytest.raises(simrpc.StreamError):
        streams.add_stream(simrpc.build_call('Svc', 'Counter'))


# The remaining tests run against the stub server.


def test_server_values(client, stub_server):

    call = client.build_call('Svc', 'Double', [simrpc.encode(5, types.SInt64)])
    stream = client.add_stream(call, types.SInt64)

    assert stream.get() == 10

    client.invoke(client.build_call('Svc', 'SetFactor', [simrpc.encode(4, types.SInt64)]))

    assert wait_for(stream, 20)


def test_server_dedupe(client):

    call = client.build_call('Svc', 'Double', [simrpc.encode(5, types.SInt64)])

    one = client.add_stream(call, types.SInt64)
    two = client.add_stream(call, types.SInt64)

    assert one.id == two.id
    assert two.get() == 10


def test_server_dormant(client):

    call = client.build_call('Svc', 'Double', [simrpc.encode(1, types.SInt64)])
    stream = client.add_stream(call, types.SInt64, start=False)

    assert stream.wait(timeout=0.3) == False

    stream.start(wait=True)
    assert stream.get() == 2


def test_server_remove(client, stub_server):

    stream = client.add_stream(client.build_call('Svc', 'Double', [simrpc.encode(1, types.SInt64)]), types.SInt64)
    assert stream.get() == 2

    stream.remove()

    with pytest.raises(simrpc.StreamError):
        stream.get()

    # Updates are processed in order, so once the marker value arrives the
    # stale update for the removed stream has been handled too. The server
    # never evaluates the marker id itself.

    marker = client.streams.attach(999, type=types.SInt64)

    stub_server.push([
        (stream.id, simrpc.encode(100, types.SInt64), None),
        (999, simrpc.encode(200, types.SInt64), None),
    ])

    assert wait_for(marker, 200)
    assert stream.id not in client.streams


def test_server_rate(client, stub_server):

    stream = client.add_stream(client.build_call('Svc', 'Double', [simrpc.encode(1, types.SInt64)]), types.SInt64)
    stream.rate = 10

    rates = list(stub_server.clients.values())[0].rates
    assert rates[stream.id] == 10.0


def test_server_error(client, stub_server):

    class BarError(simrpc.RPCError):
        pass

    client.add_exception_thrower('Svc', 'BarError', BarError)
    stream = client.add_stream(client.build_call('Svc', 'Fail'), types.SInt64)

    with pytest.raises(BarError):
        stream.get()


def test_connection_lost(client, stub_server):

    stream = client.add_stream(client.build_call('Svc', 'Double', [simrpc.encode(1, types.SInt64)]), types.SInt64)
    assert stream.get() == 2

    stub_server.drop_clients()

    with pytest.raises(simrpc.ConnectionClosed):
        for attempt in range(50):
            stream.wait(timeout=0.1)


class ClosedChannel:

    def recv(self):
        raise simrpc.ConnectionClosed('connection closed by peer')



def test_lost_channel_reported():

    lost = list()
    streams = StreamManager(FakeCore(), simrpc.ExceptionRegistry(), ClosedChannel(), lost.append)
    stream = streams.attach(1)

    streams.run()

    assert streams.closed == True
    assert len(lost) == 1
    assert isinstance(lost[0], simrpc.ConnectionClosed)

    with pytest.raises(simrpc.ConnectionClosed):
        stream.get()


def test_local_close_not_reported():

    lost = list()
    streams = StreamManager(FakeCore(), simrpc.ExceptionRegistry(), ClosedChannel(), lost.append)

    streams.close()
    streams.run()

    assert lost == []


def test_close_wakes_stream(client):

    stream = client.add_stream(client.build_call('Svc', 'Double', [simrpc.encode(1, types.SInt64)]), types.SInt64, start=False)
    raised = list()

    def waiter():
        try:
            stream.wait()
        except Exception as e:
            raised.append(e)

    thread = threading.Thread(target=waiter)
    thread.start()
    time.sleep(0.1)

    client.close()
    thread.join(5)

    assert thread.is_alive() == False
    assert len(raised) == 1
    assert isinstance(raised[0], simrpc.ConnectionClosed)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
