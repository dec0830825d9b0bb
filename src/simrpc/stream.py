""" Streams: server-maintained subscriptions that repeatedly evaluate a
    procedure call and push the results to the client. The
    :class:`StreamManager` owns the stream channel and the cache of most
    recent values; :class:`Stream` is the handle client code works with.
"""

import logging
import queue
import threading
import time
import weakref

from .errors import ConnectionClosed, DecodeError, StreamError
from .protocol import codec
from .protocol import message

logger = logging.getLogger(__name__)


class StreamManager:
    """ Registers streams with the server, runs the background thread that
        reads updates from the stream *channel*, and keeps the last value
        received for every registered stream.

        The cache maps a stream id to a (value, error, version) tuple. Only
        the background reader writes new values, each write replacing the
        whole tuple while holding :attr:`condition`; waiters block on that
        same condition. Values are kept as raw bytes and only decoded when
        somebody asks for them.

        The *core* argument is the :class:`simrpc.core.Core` service
        wrapper, used for the stream management procedures; the *registry*
        translates cached server errors into exceptions. If the channel is
        lost while the manager is still open, *lost* is called with the
        exception, on the reader thread, after every waiter has been woken.
    """

    def __init__(self, core, registry, channel=None, lost=None):

        self.core = core
        self.registry = registry
        self.channel = channel
        self.lost = lost
        self.closed = False
        self.condition = threading.Condition()

        self._cache = dict()
        self._listeners = dict()
        self._thread = None


    @property
    def enabled(self):
        return self.channel is not None


    def __contains__(self, id):
        return id in self._cache


    def __len__(self):
        return len(self._cache)


    def start(self):
        """ Start the background reader. There is exactly one reader per
            connection; it is the only thread that reads from the stream
            channel.
        """

        if self.channel is None or self._thread is not None:
            return

        self._thread = threading.Thread(target=self.run, name='simrpc.stream.reader')
        self._thread.daemon = True
        self._thread.start()


    def join(self, timeout=None):

        thread = self._thread

        if thread is None or thread is threading.current_thread():
            return

        thread.join(timeout)


    def run(self):

        failure = None

        while True:
            try:
                payload = self.channel.recv()
            except ConnectionClosed as e:
                if self.closed == False:
                    logger.warning("stream channel lost: %s", e)
                    failure = e
                break
            except DecodeError as e:
                # Frame boundaries are gone; nothing further can be trusted.
                logger.error("stream channel corrupted: %s", e)
                failure = e
                break

            try:
                update = message.StreamUpdate.decode(payload)
            except DecodeError as e:
                logger.warning("discarding malformed stream update: %s", e)
                continue

            self._update(update)

        self.close()

        if failure is not None and self.lost is not None:
            self.lost(failure)


    def _update(self, update):
        """ Store the contents of a :class:`simrpc.protocol.message.StreamUpdate`
            and wake up anyone waiting for new values.
        """

        wake = list()

        with self.condition:
            for item in update.results:
                try:
                    previous = self._cache[item.id]
                except KeyError:
                    # Removed, or never registered by this client. Either way
                    # the value must not be cached.
                    continue

                result = item.result
                self._cache[item.id] = (result.value, result.error, previous[2] + 1)

                try:
                    listeners = self._listeners[item.id]
                except KeyError:
                    pass
                else:
                    wake.extend(listeners)

            self.condition.notify_all()

        # Callbacks never run on this thread; they are handed off to the
        # per-stream updater threads.

        for updater in wake:
            updater.wake()


    def close(self):
        """ Stop accepting new values and wake every waiter; they will raise
            :class:`simrpc.errors.ConnectionClosed`. Closing the channel
            itself, which terminates the reader, is left to the owner.
        """

        with self.condition:
            if self.closed == True:
                return

            self.closed = True
            updaters = list()
            for listeners in self._listeners.values():
                updaters.extend(listeners)
            self._listeners.clear()

            self.condition.notify_all()

        for updater in updaters:
            updater.stop()


    def _lookup(self, id):
        """ Return the cache entry for *id*. The caller must hold
            :attr:`condition`.
        """

        if self.closed == True:
            raise ConnectionClosed('connection closed')

        try:
            return self._cache[id]
        except KeyError:
            raise StreamError("stream not found: %d" % (id)) from None


    def _insert(self, id):

        with self.condition:
            if self.closed == True:
                raise ConnectionClosed('connection closed')

            # The server hands out the same id when the same call is added
            # twice; keep whatever has already been received.

            if id not in self._cache:
                self._cache[id] = (None, None, 0)


    def add_stream(self, call, type=None, start=True):
        """ Register *call* as a stream and return a :class:`Stream` handle.
            The stream is added dormant and inserted into the cache before
            being started, so that no update can arrive before there is a
            place for it. If *start* is False the stream stays dormant until
            :func:`start_stream` is called.
        """

        if self.channel is None:
            raise StreamError('streaming is not enabled for this connection')

        id = self.core.add_stream(call, False)
        self._insert(id)
        logger.debug("added stream %d for %s.%s", id, call.service, call.procedure)

        if start == True:
            self.core.start_stream(id)

        return Stream(self, id, call, type, started=start)


    def attach(self, id, call=None, type=None, started=True):
        """ Return a :class:`Stream` handle for a stream the server created
            on our behalf, for example via the AddEvent procedure.
        """

        if self.channel is None:
            raise StreamError('streaming is not enabled for this connection')

        self._insert(id)
        return Stream(self, id, call, type, started=started)


    def start_stream(self, id):

        with self.condition:
            self._lookup(id)

        self.core.start_stream(id)


    def set_rate(self, id, rate):
        """ Set the rate, in Hz, at which the server pushes updates for this
            stream. A rate of zero pushes on every change.
        """

        with self.condition:
            self._lookup(id)

        self.core.set_stream_rate(id, float(rate))


    def remove(self, id):
        """ Remove the stream on the server and evict it from the cache. Any
            later access to *id* raises :class:`simrpc.errors.StreamError`.
        """

        with self.condition:
            self._lookup(id)

        try:
            self.core.remove_stream(id)
        finally:
            with self.condition:
                self._cache.pop(id, None)
                updaters = self._listeners.pop(id, ())
                self.condition.notify_all()

            for updater in updaters:
                updater.stop()

        logger.debug("removed stream %d", id)


    def get(self, id, wait=True):
        """ Return the (value, error, version) tuple for *id*. If *wait* is
            True and nothing has been received yet, block until the first
            value arrives.
        """

        with self.condition:
            while True:
                entry = self._lookup(id)

                if entry[2] > 0 or wait == False:
                    return entry

                self.condition.wait()


    def wait(self, id, timeout=None):
        """ Block until the next update for *id* arrives. Returns True if one
            did, or False if the *timeout* (in seconds) expired first.
        """

        return self.wait_until(id, None, timeout)


    def wait_until(self, id, predicate, timeout=None):
        """ Block until *predicate*, called with the cache entry for *id*,
            returns True. The predicate is called while holding the cache
            lock, and is re-evaluated after every update. With no predicate,
            block until the version changes. Returns False if *timeout*
            expires first.
        """

        if timeout is None:
            deadline = None
        else:
            deadline = time.monotonic() + timeout

        with self.condition:
            entry = self._lookup(id)
            version = entry[2]

            while True:
                if predicate is None:
                    if entry[2] != version:
                        return True
                elif predicate(entry) == True:
                    return True

                if deadline is None:
                    self.condition.wait()
                else:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return False
                    self.condition.wait(remaining)

                entry = self._lookup(id)


    def listen(self, id, updater):
        """ Wake *updater* (an :class:`_Updater`) whenever *id* is updated.
        """

        with self.condition:
            self._lookup(id)
            self._listeners.setdefault(id, list()).append(updater)


    def unlisten(self, id, updater):

        with self.condition:
            try:
                self._listeners[id].remove(updater)
            except (KeyError, ValueError):
                pass


# end of class StreamManager



class Stream:
    """ Handle for one stream. The most recent value is available via
        :func:`get`, which decodes the cached bytes according to *type* (a
        :mod:`simrpc.protocol.types` descriptor); with no *type*, the raw
        bytes are returned.

        Calling the instance is the same as calling :func:`get`.
    """

    def __init__(self, manager, id, call=None, type=None, started=False):

        self.manager = manager
        self.id = id
        self.call = call
        self.type = type
        self.started = started

        self._rate = 0.0
        self._decoded = None
        self._callbacks = list()
        self._updater = None


    def __repr__(self):
        if self.call is None:
            return "<Stream #%d>" % (self.id)
        return "<Stream #%d %s.%s>" % (self.id, self.call.service, self.call.procedure)


    def __call__(self):
        return self.get()


    def _convert(self, entry):
        """ Turn a cache entry into a value, raising the cached error if the
            server reported one. The decoded value is remembered for as long as
            the same cache entry is current.
        """

        value, error, version = entry

        if error is not None:
            raise self.manager.registry.create(error)

        decoded = self._decoded
        if decoded is not None and decoded[0] is entry:
            return decoded[1]

        if self.type is None:
            result = value
        else:
            result = codec.decode(value, self.type)

        self._decoded = (entry, result)
        return result


    def get(self):
        """ Return the most recent value. A dormant stream is started first,
            and the call blocks until the first value arrives.
        """

        if self.started == False:
            self.start()

        entry = self.manager.get(self.id)
        return self._convert(entry)


    def wait(self, timeout=None):
        """ Block until the next update arrives. Returns False if *timeout*
            seconds elapse first, True otherwise.
        """

        return self.manager.wait(self.id, timeout)


    def start(self, wait=False):
        """ Start a dormant stream. Set *wait* to True to block until the
            first value has arrived.
        """

        if self.started == False:
            self.manager.start_stream(self.id)
            self.started = True

        if wait == True:
            self.manager.get(self.id)


    @property
    def rate(self):
        """ The update rate requested for this stream, in Hz. Zero means
            updates are pushed on every change.
        """

        return self._rate


    @rate.setter
    def rate(self, rate):

        self.manager.set_rate(self.id, rate)
        self._rate = float(rate)


    def remove(self):
        """ Remove the stream. Further calls to :func:`get` raise
            :class:`simrpc.errors.StreamError`.
        """

        self.manager.remove(self.id)
        self._decoded = None
        self._callbacks = list()
        self._updater = None


    def add_callback(self, callback):
        """ Register a callback to be invoked with the new value every time
            an update arrives. Only a weak reference to the callback is
            kept. Callbacks are run on a background thread dedicated to this
            stream, never on the thread reading from the network, and should
            return promptly: updates that arrive while a callback is running
            are coalesced.
        """

        if callable(callback):
            pass
        else:
            raise TypeError('the callback must be callable')

        self._callbacks.append(_reference(callback))

        if self._updater is None:
            updater = _Updater(self._dispatch)
            self.manager.listen(self.id, updater)
            self._updater = updater


    def remove_callback(self, callback):

        remaining = list()
        for reference in self._callbacks:
            referenced = reference()
            if referenced is not None and referenced != callback:
                remaining.append(reference)

        self._callbacks = remaining

        if len(remaining) == 0 and self._updater is not None:
            self.manager.unlisten(self.id, self._updater)
            self._updater.stop()
            self._updater = None


    def _dispatch(self):
        """ Invoke the registered callbacks with the current value. This runs
            on the :class:`_Updater` thread.
        """

        try:
            entry = self.manager.get(self.id, wait=False)
        except (ConnectionClosed, StreamError):
            return

        try:
            value = self._convert(entry)
        except Exception as e:
            logger.warning("stream %d: not invoking callbacks: %s", self.id, e)
            return

        invalid = list()

        for reference in self._callbacks:
            callback = reference()

            if callback is None:
                invalid.append(reference)
                continue

            try:
                callback(value)
            except Exception:
                logger.exception("stream %d: callback %r failed", self.id, callback)

        for reference in invalid:
            try:
                self._callbacks.remove(reference)
            except ValueError:
                pass


# end of class Stream



def _reference(thing):
    """ Return a weak reference to the supplied argument, regardless of
        whether it is a plain function or a bound method; a plain weak
        reference to a bound method dies immediately.
    """

    try:
        thing.__func__
        thing.__self__
    except AttributeError:
        return weakref.ref(thing)
    else:
        return weakref.WeakMethod(thing)



class _Updater:
    """ Background thread to invoke the callbacks for one :class:`Stream`.
        This keeps the loop reading from the stream channel tight, where a
        user-provided callback may require an unbounded amount of time.
    """

    def __init__(self, method):

        self.method = method
        self.queue = queue.SimpleQueue()
        self.pending = threading.Event()
        self.shutdown = False

        self.thread = threading.Thread(target=self.run, name='simrpc.stream.updater')
        self.thread.daemon = True
        self.thread.start()


    def run(self):

        while True:
            self.queue.get()

            if self.shutdown == True:
                break

            # Several updates may have been queued while the previous
            # callback was running; one dispatch covers all of them.

            self.pending.clear()
            self.method()


    def stop(self):
        self.shutdown = True
        self.queue.put(None)


    def wake(self):

        if self.pending.is_set():
            return

        self.pending.set()
        self.queue.put(None)


# end of class _Updater


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
