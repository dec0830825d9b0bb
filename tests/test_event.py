import threading
import time
import pytest
import simrpc

from simrpc.protocol import types


def set_flag(client, value):
    client.invoke(client.build_call('Svc', 'SetFlag', [simrpc.encode(value, types.Bool)]))


def test_wait(client):

    event = client.event(client.build_call('Svc', 'Flag'))
    outcome = list()

    def waiter():
        outcome.append(event.wait(timeout=5))

    thread = threading.Thread(target=waiter)
    thread.start()
    time.sleep(0.1)

    set_flag(client, True)
    thread.join(5)

    assert outcome == [True]
    assert event.is_set() == True


def test_timeout(client):

    event = client.event(client.build_call('Svc', 'Flag'))

    before = time.monotonic()
    assert event.wait(timeout=0.3) == False
    assert time.monotonic() - before >= 0.3
    assert event.is_set() == False


def test_already_set(client):

    set_flag(client, True)

    event = client.event(client.build_call('Svc', 'Flag'))
    assert event.wait(timeout=5) == True


def test_expression(client):

    expression = client.core.expression
    flag = expression.call(client.build_call('Svc', 'Flag'))
    raised = expression.equal(flag, expression.constant_bool(True))

    assert isinstance(raised, simrpc.RemoteObject)
    assert raised.type_name == 'KRPC.Expression'

    event = client.add_event(raised)

    assert event.stream.started == False
    assert event.is_set() == False

    set_flag(client, True)
    assert event.wait(timeout=5) == True
    assert event.stream.started == True


def test_expression_comparison(client):

    expression = client.core.expression
    doubled = expression.call(client.build_call('Svc', 'Double', [simrpc.encode(5, types.SInt64)]))
    event = client.add_event(expression.greater_than(doubled, expression.constant_int(15)))

    assert event.wait(timeout=0.3) == False

    client.invoke(client.build_call('Svc', 'SetFactor', [simrpc.encode(4, types.SInt64)]))
    assert event.wait(timeout=5) == True


def test_expression_logic(client):

    expression = client.core.expression
    flag = expression.call(client.build_call('Svc', 'Flag'))
    lowered = expression.not_(flag)
    either = expression.or_(lowered, expression.constant_bool(False))
    both = expression.and_(either, expression.less_than(expression.constant_double(1.5), expression.constant_double(2.5)))

    event = client.add_event(both)
    assert event.wait(timeout=5) == True


def test_expression_unknown(client):

    with pytest.raises(simrpc.RPCError):
        client.add_event(simrpc.RemoteObject('KRPC.Expression', 12345))


def test_close_wakes(client):

    event = client.event(client.build_call('Svc', 'Flag'))
    raised = list()

    def waiter():
        try:
            event.wait()
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


def test_remove(client):

    event = client.event(client.build_call('Svc', 'Flag'))
    event.remove()

    with pytest.raises(simrpc.StreamError):
        event.wait(timeout=1)


def test_requires_call():

    with pytest.raises(ValueError):
        simrpc.Event(None)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
