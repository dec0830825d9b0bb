""" Class representations of the messages exchanged with the server. Each
    message is a small immutable record; its wire form is the
    :class:`simrpc.protocol.types.Tuple` of its fields, in the order listed
    in the ``fields`` attribute.
"""

from . import fields as constants
from . import types


class Message:
    """ Base class for wire messages. Subclasses define ``fields``, a
        sequence of (attribute name, type descriptor) pairs, and
        ``defaults``, a dictionary of values for attributes that may be
        omitted from the constructor.
    """

    fields = ()
    defaults = dict()

    def __init__(self, **kwargs):

        for name, field_type in self.fields:
            try:
                value = kwargs.pop(name)
            except KeyError:
                try:
                    value = self.defaults[name]
                except KeyError:
                    raise TypeError("%s requires '%s'" % (self.__class__.__name__, name))

            # Repeated fields are stored as tuples, so that a message cannot
            # be modified after the fact.

            if isinstance(value, list):
                value = tuple(value)

            object.__setattr__(self, name, value)

        if kwargs:
            unknown = ', '.join(sorted(kwargs))
            raise TypeError("%s got unexpected fields: %s" % (self.__class__.__name__, unknown))


    def __setattr__(self, name, value):
        raise AttributeError(self.__class__.__name__ + ' instances are immutable')


    def __eq__(self, other):

        if other.__class__ is not self.__class__:
            return NotImplemented

        for name, field_type in self.fields:
            if getattr(self, name) != getattr(other, name):
                return False

        return True


    def __hash__(self):
        return hash(self.encode())


    def __repr__(self):

        values = list()
        for name, field_type in self.fields:
            values.append("%s=%r" % (name, getattr(self, name)))

        return "%s(%s)" % (self.__class__.__name__, ', '.join(values))


    @classmethod
    def type(cls):
        """ Return the :class:`simrpc.protocol.types.MessageType` descriptor
            for this message class.
        """

        try:
            descriptor = cls.__dict__['_descriptor']
        except KeyError:
            descriptor = types.MessageType(cls)
            setattr(cls, '_descriptor', descriptor)

        return descriptor


    def encode(self):
        # ConnectionRequest has a field named type, which shadows the
        # classmethod on instances.
        return self.__class__.type().encode(self)


    @classmethod
    def decode(cls, data):
        return cls.type().decode(bytes(data))


# end of class Message



class ConnectionRequest(Message):

    fields = (
        ('type', types.Enumeration(constants.ConnectionType)),
        ('client_name', types.String),
        ('client_identifier', types.Bytes),
    )

    defaults = dict(client_name='', client_identifier=b'')



class ConnectionResponse(Message):

    fields = (
        ('status', types.Enumeration(constants.ConnectionStatus)),
        ('message', types.String),
        ('client_identifier', types.Bytes),
    )

    defaults = dict(message='', client_identifier=b'')



class Argument(Message):
    """ One encoded argument, tagged with its position in the remote
        signature so that skipped arguments can take server-side defaults.
    """

    fields = (
        ('position', types.UInt32),
        ('value', types.Bytes),
    )



class ProcedureCall(Message):
    """ The call descriptor: which procedure to run, and the already-encoded
        arguments to run it with. Build instances via
        :func:`simrpc.protocol.builder.build_call`.
    """

    fields = (
        ('service', types.String),
        ('procedure', types.String),
        ('arguments', types.List(Argument.type())),
    )

    defaults = dict(arguments=())



class Request(Message):

    fields = (
        ('calls', types.List(ProcedureCall.type())),
    )



class Error(Message):

    fields = (
        ('service', types.String),
        ('name', types.String),
        ('description', types.String),
        ('stack_trace', types.String),
    )

    defaults = dict(service='', name='', stack_trace='')



class ProcedureResult(Message):

    fields = (
        ('error', types.Optional(Error.type())),
        ('value', types.Bytes),
    )

    defaults = dict(error=None, value=b'')



class Response(Message):

    fields = (
        ('error', types.Optional(Error.type())),
        ('results', types.List(ProcedureResult.type())),
    )

    defaults = dict(error=None, results=())



class StreamResult(Message):

    fields = (
        ('id', types.UInt64),
        ('result', ProcedureResult.type()),
    )



class StreamUpdate(Message):

    fields = (
        ('results', types.List(StreamResult.type())),
    )



class StreamInfo(Message):
    """ The server's description of a newly added stream, as returned by the
        AddStream and AddEvent procedures.
    """

    fields = (
        ('id', types.UInt64),
    )



class Status(Message):
    """ Server version and activity counters, as returned by the GetStatus
        procedure.
    """

    fields = (
        ('version', types.String),
        ('bytes_read', types.UInt64),
        ('bytes_written', types.UInt64),
        ('bytes_read_rate', types.Float),
        ('bytes_written_rate', types.Float),
        ('rpcs_executed', types.UInt64),
        ('rpc_rate', types.Float),
        ('one_rpc_per_update', types.Bool),
        ('max_time_per_update', types.UInt32),
        ('adaptive_rate_control', types.Bool),
        ('blocking_recv', types.Bool),
        ('recv_timeout', types.UInt32),
        ('time_per_rpc_update', types.Float),
        ('poll_time_per_rpc_update', types.Float),
        ('exec_time_per_rpc_update', types.Float),
        ('stream_rpcs', types.UInt32),
        ('stream_rpcs_executed', types.UInt64),
        ('stream_rpc_rate', types.Float),
        ('time_per_stream_update', types.Float),
    )

    defaults = dict(
        bytes_read=0, bytes_written=0, bytes_read_rate=0.0, bytes_written_rate=0.0,
        rpcs_executed=0, rpc_rate=0.0, one_rpc_per_update=False, max_time_per_update=0,
        adaptive_rate_control=False, blocking_recv=False, recv_timeout=0,
        time_per_rpc_update=0.0, poll_time_per_rpc_update=0.0, exec_time_per_rpc_update=0.0,
        stream_rpcs=0, stream_rpcs_executed=0, stream_rpc_rate=0.0, time_per_stream_update=0.0,
    )



# The service description carries parameter and return types by name,
# for example 'double' or 'Class(SpaceCenter.Vessel)'.

class Parameter(Message):

    fields = (
        ('name', types.String),
        ('type', types.String),
        ('default_value', types.Optional(types.Bytes)),
    )

    defaults = dict(default_value=None)



class Procedure(Message):

    fields = (
        ('name', types.String),
        ('parameters', types.List(Parameter.type())),
        ('return_type', types.Optional(types.String)),
        ('documentation', types.String),
    )

    defaults = dict(parameters=(), return_type=None, documentation='')



class Service(Message):

    fields = (
        ('name', types.String),
        ('procedures', types.List(Procedure.type())),
        ('classes', types.List(types.String)),
        ('enumerations', types.List(types.String)),
        ('documentation', types.String),
    )

    defaults = dict(procedures=(), classes=(), enumerations=(), documentation='')



class Services(Message):
    """ Everything the server exposes, as returned by the GetServices
        procedure.
    """

    fields = (
        ('services', types.List(Service.type())),
    )

    defaults = dict(services=())


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
