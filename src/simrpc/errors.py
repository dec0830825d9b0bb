""" Exception classes raised by the simrpc client, and the registry used to
    translate server-reported errors into typed client-side exceptions.
"""

import builtins
import threading


class ClientError(Exception):
    """ Base class for all errors raised by simrpc.
    """


class ConnectionError(ClientError, builtins.ConnectionError):
    """ The connection could not be established or maintained; this covers
        handshake failures as well as I/O errors on either channel.
    """


class ConnectionClosed(ConnectionError):
    """ The connection was closed, either locally via
        :func:`simrpc.Client.close` or because the remote end went away.
        Every blocked caller receives this same exception.
    """


class DecodeError(ClientError, ValueError):
    """ A wire payload could not be decoded: truncated, malformed, or not
        matching the expected type.
    """


class StreamError(ClientError):
    """ The stream id is not known to this client, most likely because the
        stream was removed.
    """


class RPCError(ClientError):
    """ A remote procedure reported a failure. Service-specific exception
        classes registered via :func:`ExceptionRegistry.add` are expected to
        subclass :class:`RPCError`; the constructor accepts the message as
        its sole required argument, so that the class itself can serve as
        the factory.

        :ivar service: The service that raised the error, if known.
        :ivar name: The server-side name of the error, if known.
        :ivar description: The human-readable message from the server.
        :ivar stack_trace: The server-side stack trace, if provided.
    """

    def __init__(self, description, service=None, name=None, stack_trace=None):

        ClientError.__init__(self, description)
        self.description = description
        self.service = service
        self.name = name
        self.stack_trace = stack_trace


# end of class RPCError



class ExceptionRegistry:
    """ Lookup table translating (service, exception name) pairs into
        factories for typed exceptions. Each :class:`simrpc.Client` owns
        one registry; service wrappers populate it once, at construction,
        and it is effectively read-only after that point.
    """

    def __init__(self):

        self._factories = dict()
        self._lock = threading.Lock()


    def __contains__(self, key):
        return key in self._factories


    def __len__(self):
        return len(self._factories)


    def add(self, service, name, factory):
        """ Register *factory* for errors named *name* reported by *service*.
            The *factory* is called with the server-provided message and must
            return an exception instance; an exception class accepting a
            single message argument is the typical choice.
        """

        if callable(factory):
            pass
        else:
            raise TypeError('the exception factory must be callable')

        key = (service, name)

        with self._lock:
            self._factories[key] = factory


    def lookup(self, service, name):
        """ Return the registered factory, or None if there is none.
        """

        return self._factories.get((service, name))


    def create(self, error):
        """ Translate a :class:`simrpc.protocol.message.Error` instance into
            an exception instance. Errors without a registered factory
            degrade to a generic :class:`RPCError`.
        """

        factory = self.lookup(error.service, error.name)

        if factory is None:
            description = error.description
            if error.service and error.name:
                description = "%s.%s: %s" % (error.service, error.name, description)

            return RPCError(description, error.service, error.name, error.stack_trace)

        exception = factory(error.description)

        if isinstance(exception, RPCError):
            exception.service = error.service
            exception.name = error.name
            exception.stack_trace = error.stack_trace

        return exception


# end of class ExceptionRegistry


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
