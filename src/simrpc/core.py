""" Wrapper for the server's core service, which manages connected clients,
    streams and events. This follows the same shape as any other service
    wrapper: marshal typed arguments through :func:`simrpc.protocol.encode`
    and :func:`simrpc.Client.build_call`, invoke, and decode the result.
"""

from .errors import RPCError
from .protocol import codec
from .protocol import fields
from .protocol import message
from .protocol import types


class ArgumentException(RPCError):
    """ At least one argument does not meet the parameter specification of
        the invoked procedure.
    """


class ArgumentNullException(RPCError):
    """ A null reference was passed to a procedure that does not accept it.
    """


class ArgumentOutOfRangeException(RPCError):
    """ An argument is outside the range of values allowed by the invoked
        procedure.
    """


class InvalidOperationException(RPCError):
    """ The procedure call is invalid given the current state of the object.
    """


exceptions = (
    ArgumentException,
    ArgumentNullException,
    ArgumentOutOfRangeException,
    InvalidOperationException,
)

Clients = types.List(types.Tuple(types.String, types.String, types.String))
ExpressionType = types.Class('KRPC.Expression')


class Core:
    """ The core service, bound to a :class:`simrpc.Client` instance.
        Constructing a :class:`Core` registers the service's exception types
        with the client.
    """

    service = fields.CORE

    def __init__(self, client):

        self.client = client
        self.expression = Expression(self)

        for exception in exceptions:
            client.add_exception_thrower(self.service, exception.__name__, exception)


    def _call(self, procedure, *args):
        return self.client.build_call(self.service, procedure, args)


    def _invoke(self, procedure, *args):
        call = self._call(procedure, *args)
        return self.client.invoke(call)


    def get_client_id(self):
        """ Return the identifier the server assigned to this client.
        """

        data = self._invoke(fields.GET_CLIENT_ID)
        return codec.decode(data, types.Bytes)


    def get_client_name(self):
        data = self._invoke(fields.GET_CLIENT_NAME)
        return codec.decode(data, types.String)


    def clients(self):
        """ Return a list of (identifier, name, address) tuples, one for each
            client connected to the server.
        """

        data = self._invoke(fields.GET_CLIENTS)
        return codec.decode(data, Clients)


    def get_status(self):
        """ Return a :class:`simrpc.protocol.message.Status` describing the
            server version and its activity counters.
        """

        data = self._invoke(fields.GET_STATUS)
        return message.Status.decode(data)


    def get_services(self):
        """ Return a :class:`simrpc.protocol.message.Services` describing
            every service, procedure, class and enumeration the server
            exposes.
        """

        data = self._invoke(fields.GET_SERVICES)
        return message.Services.decode(data)


    def add_stream_call(self, call, start=True):
        return self._call(fields.ADD_STREAM, call.encode(), codec.encode(start, types.Bool))


    def add_stream(self, call, start=True):
        """ Register *call* as a stream and return its id.
        """

        data = self.client.invoke(self.add_stream_call(call, start))
        return message.StreamInfo.decode(data).id


    def start_stream_call(self, id):
        return self._call(fields.START_STREAM, codec.encode(id, types.UInt64))


    def start_stream(self, id):
        self.client.invoke(self.start_stream_call(id))


    def remove_stream_call(self, id):
        return self._call(fields.REMOVE_STREAM, codec.encode(id, types.UInt64))


    def remove_stream(self, id):
        self.client.invoke(self.remove_stream_call(id))


    def set_stream_rate_call(self, id, rate):
        return self._call(fields.SET_STREAM_RATE, codec.encode(id, types.UInt64), codec.encode(rate, types.Float))


    def set_stream_rate(self, id, rate):
        self.client.invoke(self.set_stream_rate_call(id, rate))


    def add_event_call(self, expression):
        return self._call(fields.ADD_EVENT, codec.encode(expression, ExpressionType))


    def add_event(self, expression):
        """ Ask the server to evaluate the boolean *expression*, a reference
            to a server-side expression object such as one built via
            :attr:`expression`, as an event. Returns the id of the stream
            carrying the event state.
        """

        data = self.client.invoke(self.add_event_call(expression))
        return message.StreamInfo.decode(data).id


# end of class Core



class Expression:
    """ Builder for server-side boolean expressions, the input to
        :func:`Core.add_event`. Every method creates a new expression object
        on the server and returns a reference to it; expressions combine
        into larger ones by passing those references back in.

        An instance is available as the :attr:`Core.expression` attribute::

            flag = client.build_call('Svc', 'Flag')
            expression = client.core.expression
            fired = expression.equal(expression.call(flag), expression.constant_bool(True))
            event = client.add_event(fired)
    """

    prefix = 'Expression_static_'

    def __init__(self, core):
        self.core = core


    def _build(self, procedure, *args):

        data = self.core._invoke(self.prefix + procedure, *args)
        return codec.decode(data, ExpressionType)


    def _binary(self, procedure, left, right):
        return self._build(procedure, codec.encode(left, ExpressionType), codec.encode(right, ExpressionType))


    def call(self, call):
        """ An expression whose value is the result of invoking *call*, a
            :class:`simrpc.protocol.message.ProcedureCall`.
        """

        return self._build('Call', call.encode())


    def constant_bool(self, value):
        return self._build('ConstantBool', codec.encode(value, types.Bool))


    def constant_int(self, value):
        return self._build('ConstantInt', codec.encode(value, types.SInt32))


    def constant_float(self, value):
        return self._build('ConstantFloat', codec.encode(value, types.Float))


    def constant_double(self, value):
        return self._build('ConstantDouble', codec.encode(value, types.Double))


    def constant_string(self, value):
        return self._build('ConstantString', codec.encode(value, types.String))


    def equal(self, left, right):
        return self._binary('Equal', left, right)


    def not_equal(self, left, right):
        return self._binary('NotEqual', left, right)


    def greater_than(self, left, right):
        return self._binary('GreaterThan', left, right)


    def greater_than_or_equal(self, left, right):
        return self._binary('GreaterThanOrEqual', left, right)


    def less_than(self, left, right):
        return self._binary('LessThan', left, right)


    def less_than_or_equal(self, left, right):
        return self._binary('LessThanOrEqual', left, right)


    def and_(self, left, right):
        return self._binary('And', left, right)


    def or_(self, left, right):
        return self._binary('Or', left, right)


    def exclusive_or(self, left, right):
        return self._binary('ExclusiveOr', left, right)


    def not_(self, operand):
        return self._build('Not', codec.encode(operand, ExpressionType))


    def add(self, left, right):
        return self._binary('Add', left, right)


    def subtract(self, left, right):
        return self._binary('Subtract', left, right)


    def multiply(self, left, right):
        return self._binary('Multiply', left, right)


    def divide(self, left, right):
        return self._binary('Divide', left, right)


    def modulo(self, left, right):
        return self._binary('Modulo', left, right)


    def power(self, left, right):
        return self._binary('Power', left, right)


# end of class Expression


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
