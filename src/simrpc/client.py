""" The :class:`Client` owns a connection to the server: the call channel
    used for procedure invocation, the optional stream channel used for
    server-pushed updates, and everything layered on top of them.
"""

import enum
import logging
import threading

from . import config
from . import transport
from .core import Core
from .errors import ConnectionClosed, ConnectionError, DecodeError, ExceptionRegistry
from .event import Event
from .invoker import Invoker
from .protocol import builder
from .protocol import fields
from .protocol import message
from .protocol import types
from .stream import StreamManager

logger = logging.getLogger(__name__)


class State(enum.Enum):
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'
    CLOSING = 'closing'
    CLOSED = 'closed'



class Client:
    """ A connection to the server. Arguments left as None take their values
        from :func:`simrpc.config.load`. Set *stream* to False to skip the
        stream channel entirely; streams and events are then unavailable.

        A :class:`Client` is not connected until :func:`connect` is called;
        the module-level :func:`connect` does both steps. Instances are
        context managers, closing the connection on exit.

        :ivar registry: The :class:`simrpc.errors.ExceptionRegistry` shared
            by every service wrapper bound to this client.
        :ivar core: The :class:`simrpc.core.Core` service wrapper.
        :ivar client_id: The identifier assigned by the server.
    """

    join_timeout = 5
    handshake_timeout = 10

    def __init__(self, name=None, address=None, rpc_port=None, stream_port=None, stream=True, transport=None):

        settings = config.load()

        if name is None:
            name = settings['name']
        if address is None:
            address = settings['address']
        if rpc_port is None:
            rpc_port = settings['rpc_port']
        if stream_port is None:
            stream_port = settings['stream_port']
        if transport is None:
            transport = settings['transport']

        self.name = name
        self.address = address
        self.rpc_port = int(rpc_port)
        self.stream_port = int(stream_port)
        self.stream = stream
        self.transport = transport

        self.state = State.DISCONNECTED
        self.client_id = None
        self.registry = ExceptionRegistry()
        self.invoker = None
        self.streams = None

        self._call_channel = None
        self._stream_channel = None
        self._state_lock = threading.Lock()

        self.core = Core(self)


    def __repr__(self):
        return "<simrpc.Client %r %s:%d %s>" % (self.name, self.address, self.rpc_port, self.state.value)


    def __enter__(self):
        return self


    def __exit__(self, *exception):
        self.close()


    def _handshake(self, channel, request):
        """ Send a :class:`simrpc.protocol.message.ConnectionRequest` on a
            freshly opened *channel* and return the server's response. Any
            refusal by the server raises :class:`simrpc.errors.ConnectionError`.
        """

        channel.send(request.encode())
        reply = channel.recv(self.handshake_timeout)

        try:
            response = message.ConnectionResponse.decode(reply)
        except DecodeError as e:
            raise ConnectionError('malformed handshake response: ' + str(e)) from e

        status = response.status

        if status != fields.ConnectionStatus.OK:
            try:
                status = status.name
            except AttributeError:
                pass

            error = "%s:%d refused %s connection: %s: %s" % (channel.address, channel.port, request.type.name, status, response.message)
            raise ConnectionError(error)

        return response


    def connect(self):
        """ Open the call channel and register with the server. If streaming
            was requested, also open the stream channel, bind it to the
            identifier the server assigned, and start the background reader.
        """

        with self._state_lock:
            if self.state != State.DISCONNECTED:
                raise ConnectionError('cannot connect, client is ' + self.state.value)
            self.state = State.CONNECTING

        try:
            channel = transport.channel(self.address, self.rpc_port, self.transport)
            self._call_channel = channel
            channel.open()

            request = message.ConnectionRequest(type=fields.ConnectionType.RPC, client_name=self.name)
            response = self._handshake(channel, request)
            self.client_id = response.client_identifier
            self.invoker = Invoker(channel, self.registry)

            stream_channel = None

            if self.stream == True:
                stream_channel = transport.channel(self.address, self.stream_port, self.transport)
                self._stream_channel = stream_channel
                stream_channel.open()

                request = message.ConnectionRequest(type=fields.ConnectionType.STREAM, client_identifier=self.client_id)
                self._handshake(stream_channel, request)

            self.streams = StreamManager(self.core, self.registry, stream_channel, self._stream_lost)

        except BaseException:
            self._teardown()
            with self._state_lock:
                self.state = State.CLOSED
            raise

        with self._state_lock:
            if self.state != State.CONNECTING:
                # close() was called while the handshake was in progress.
                raise ConnectionClosed('connection closed')

            self.state = State.CONNECTED

        self.streams.start()
        logger.info("connected to %s:%d as %r", self.address, self.rpc_port, self.name)


    def _teardown(self):

        if self.streams is not None:
            self.streams.close()

        if self.invoker is not None:
            self.invoker.close()

        for channel in (self._call_channel, self._stream_channel):
            if channel is not None:
                channel.close()

        if self.streams is not None:
            self.streams.join(self.join_timeout)


    def close(self):
        """ Close the connection. Every thread blocked in :func:`invoke`, or
            waiting on a stream or event, is woken up with
            :class:`simrpc.errors.ConnectionClosed`. Closing an already
            closed client does nothing.
        """

        with self._state_lock:
            if self.state == State.CLOSING or self.state == State.CLOSED:
                return

            self.state = State.CLOSING

        self._teardown()

        with self._state_lock:
            self.state = State.CLOSED

        logger.info("closed connection to %s:%d", self.address, self.rpc_port)


    def _stream_lost(self, error):
        """ Called from the stream reader when the stream channel goes away
            underneath an open client. Procedure calls may still work, but
            streams and events no longer receive updates.
        """

        logger.warning("%s:%d: stream channel lost, streams and events are unavailable: %s", self.address, self.stream_port, error)


    @property
    def connected(self):
        """ True if the client is connected and, where streaming was
            requested, the stream channel is still alive.
        """

        if self.state != State.CONNECTED:
            return False

        streams = self.streams
        if streams is not None and streams.enabled and streams.closed == True:
            return False

        return True


    def _require_connection(self):

        if self.invoker is None:
            if self.state == State.CLOSED or self.state == State.CLOSING:
                raise ConnectionClosed('connection closed')
            raise ConnectionError('not connected')


    def add_exception_thrower(self, service, name, factory):
        """ Register *factory* to build the exception raised when *service*
            reports an error named *name*. See
            :func:`simrpc.errors.ExceptionRegistry.add`.
        """

        self.registry.add(service, name, factory)


    def build_call(self, service, procedure, args=()):
        """ See :func:`simrpc.protocol.builder.build_call`.
        """

        return builder.build_call(service, procedure, args)


    def invoke(self, call):
        """ Invoke *call* and return the raw result bytes. See
            :func:`simrpc.invoker.Invoker.invoke`.
        """

        self._require_connection()
        return self.invoker.invoke(call)


    def invoke_batch(self, calls):
        """ Invoke several calls in a single request, returning one
            :class:`simrpc.invoker.Result` per call, in order.
        """

        self._require_connection()
        return self.invoker.invoke_batch(calls)


    def add_stream(self, call, type=None, start=True):
        """ Register *call* as a stream and return its
            :class:`simrpc.stream.Stream` handle; values are decoded
            according to *type*. With *start* set to False the stream is
            created dormant.
        """

        self._require_connection()
        return self.streams.add_stream(call, type, start)


    def add_event(self, expression):
        """ Create an :class:`simrpc.event.Event` from a server-side boolean
            *expression* object.
        """

        self._require_connection()

        id = self.core.add_event(expression)
        stream = self.streams.attach(id, type=types.Bool, started=False)
        return Event(self, stream=stream)


    def event(self, call):
        """ Create an :class:`simrpc.event.Event` from the *call* for a
            boolean-valued procedure.
        """

        self._require_connection()
        return Event(self, call)


# end of class Client



def connect(name=None, address=None, rpc_port=None, stream_port=None, stream=True, transport=None):
    """ Create a :class:`Client` and connect it. Arguments left as None take
        their values from :func:`simrpc.config.load`.
    """

    client = Client(name, address, rpc_port, stream_port, stream, transport)
    client.connect()
    return client


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
