""" Synchronous invocation of remote procedures over the call channel.
"""

import logging
import threading

from .errors import ConnectionClosed, DecodeError
from .protocol import message

logger = logging.getLogger(__name__)


class Result:
    """ The outcome of one call within a batch: either the raw result bytes,
        or the exception the call produced. Each result is inspected
        independently; one failure has no effect on its neighbors.

        :ivar call: The :class:`simrpc.protocol.message.ProcedureCall`.
        :ivar error: The translated exception, or None on success.
    """

    def __init__(self, call, data=None, error=None):

        self.call = call
        self.data = data
        self.error = error


    @property
    def ok(self):
        return self.error is None


    @property
    def value(self):
        """ The raw result bytes. Raises the stored exception if the call
            failed.
        """

        if self.error is not None:
            raise self.error

        return self.data


    def __repr__(self):
        name = self.call.service + '.' + self.call.procedure

        if self.error is None:
            return "<Result %s: %d bytes>" % (name, len(self.data))
        else:
            return "<Result %s: %r>" % (name, self.error)


# end of class Result



class Invoker:
    """ Issue :class:`simrpc.protocol.message.Request` frames on a
        *channel* and wait for the matching responses. Only one request is
        in flight at any time, so responses correlate 1:1 with requests;
        concurrent callers are serialized. Server-reported errors are
        translated using the *registry*, an
        :class:`simrpc.errors.ExceptionRegistry` instance.
    """

    def __init__(self, channel, registry):

        self.channel = channel
        self.registry = registry
        self.closed = False
        self._lock = threading.Lock()


    def close(self):
        """ Fail any pending or future invocation with
            :class:`simrpc.errors.ConnectionClosed`. Closing the channel
            itself, which unblocks a pending receive, is left to the owner.
        """

        self.closed = True


    def _transact(self, calls):

        request = message.Request(calls=calls)
        payload = request.encode()

        with self._lock:
            if self.closed == True:
                raise ConnectionClosed('connection closed')

            try:
                self.channel.send(payload)
                reply = self.channel.recv()
            except ConnectionClosed:
                if self.closed == True:
                    raise ConnectionClosed('connection closed') from None
                raise

        try:
            response = message.Response.decode(reply)
        except DecodeError as e:
            raise DecodeError('malformed response: ' + str(e)) from e

        if response.error is not None:
            raise self.registry.create(response.error)

        if len(response.results) != len(calls):
            raise DecodeError("expected %d results, received %d" % (len(calls), len(response.results)))

        return response.results


    def invoke(self, call):
        """ Invoke a single :class:`simrpc.protocol.message.ProcedureCall`
            and return the raw result bytes; decoding them is up to the
            caller. This method blocks until the response arrives, there is
            no timeout. Errors reported by the server are raised as typed
            exceptions.
        """

        logger.debug("invoke %s.%s", call.service, call.procedure)

        result = self._transact((call,))[0]

        if result.error is not None:
            raise self.registry.create(result.error)

        return result.value


    def invoke_batch(self, calls):
        """ Invoke several calls in one request. Returns a list of
            :class:`Result` instances in the same order as *calls*; a failed
            call is represented by its :class:`Result`, it is not raised.
        """

        calls = tuple(calls)

        if len(calls) == 0:
            return list()

        logger.debug("invoke batch of %d calls", len(calls))

        results = list()

        for call, result in zip(calls, self._transact(calls)):
            if result.error is None:
                results.append(Result(call, result.value))
            else:
                results.append(Result(call, error=self.registry.create(result.error)))

        return results


# end of class Invoker


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
