""" Events: boolean streams that can be waited upon.
"""

from .protocol import codec
from .protocol import types


class Event:
    """ An :class:`Event` wraps a boolean-valued :class:`simrpc.stream.Stream`.
        :func:`wait` blocks until the most recently received value is True;
        it sleeps on the same condition the stream manager signals for
        every update, there is no polling.

        Construct an :class:`Event` from the *call* for a boolean-valued
        procedure, or pass an existing boolean *stream* instead, as
        :func:`simrpc.Client.add_event` does.
    """

    def __init__(self, client, call=None, stream=None):

        if stream is None:
            if call is None:
                raise ValueError('an Event requires either a call or a stream')

            stream = client.add_stream(call, types.Bool, start=True)

        self.client = client
        self.stream = stream


    def __repr__(self):
        return "<Event for %r>" % (self.stream)


    def _is_set(self, entry):

        value, error, version = entry

        if version == 0:
            return False

        if error is not None:
            raise self.client.registry.create(error)

        return codec.decode(value, types.Bool)


    def is_set(self):
        """ Return the most recently received state of the event, without
            blocking. False if no value has arrived yet.
        """

        entry = self.stream.manager.get(self.stream.id, wait=False)
        return self._is_set(entry)


    def wait(self, timeout=None):
        """ Block until the event is True. Returns True once it is, or False
            if *timeout* seconds elapse first. Raises
            :class:`simrpc.errors.ConnectionClosed` if the connection closes
            while waiting.
        """

        if self.stream.started == False:
            self.stream.start()

        manager = self.stream.manager
        return manager.wait_until(self.stream.id, self._is_set, timeout)


    def start(self):
        self.stream.start()


    def remove(self):
        self.stream.remove()


# end of class Event


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
