""" Connection defaults. The built-in defaults can be overridden by a JSON
    file named ``client.json`` in the simrpc configuration directory, which
    can in turn be overridden by environment variables::

        SIMRPC_ADDRESS        host address of the server
        SIMRPC_RPC_PORT       port for the call channel
        SIMRPC_STREAM_PORT    port for the stream channel
        SIMRPC_NAME           client name reported to the server
        SIMRPC_TRANSPORT      transport backend, 'tcp' or 'zmq'
"""

import logging
import os

from . import json

logger = logging.getLogger(__name__)

filename = 'client.json'

defaults = dict(
    address = '127.0.0.1',
    rpc_port = 50000,
    stream_port = 50001,
    name = '',
    transport = 'tcp',
)

environment = dict(
    address = 'SIMRPC_ADDRESS',
    rpc_port = 'SIMRPC_RPC_PORT',
    stream_port = 'SIMRPC_STREAM_PORT',
    name = 'SIMRPC_NAME',
    transport = 'SIMRPC_TRANSPORT',
)

integers = set(('rpc_port', 'stream_port'))


def directory(default=None):
    """ Return the directory location where we should be loading
        configuration files. This defaults to ``$HOME/.simrpc``, but can be
        overridden by calling this method with a valid path, or by setting
        the ``SIMRPC_HOME`` environment variable. Note that changes to the
        environment variable will be ignored unless it is set prior to the
        first invocation of this method.
    """

    if default is not None:
        default = str(default)
        default = os.path.expandvars(default)

        if os.path.isabs(default):
            pass
        else:
            raise ValueError('the default directory must be an absolute path')

        os.environ['SIMRPC_HOME'] = default
        directory.found = default


    found = directory.found

    if found is not None:
        return found

    try:
        found = os.environ['SIMRPC_HOME']
    except KeyError:
        pass
    else:
        directory.found = found
        return found

    try:
        home = os.environ['HOME']
    except KeyError:
        raise RuntimeError('SIMRPC_HOME and HOME environment variables not set, cannot determine simrpc configuration directory')

    found = os.path.join(home, '.simrpc')

    directory.found = found
    return found

directory.found = None



def load():
    """ Return a dictionary with the effective connection defaults.
    """

    settings = dict(defaults)

    target = os.path.join(directory(), filename)

    if os.path.exists(target):
        try:
            contents = json.load(target)
        except json.JSONDecodeError as e:
            raise ValueError("invalid JSON in %s: %s" % (target, e))

        if isinstance(contents, dict):
            pass
        else:
            raise ValueError("%s must contain a JSON object" % (target))

        for key, value in contents.items():
            if key in defaults:
                settings[key] = value
            else:
                logger.warning("ignoring unknown setting '%s' in %s", key, target)

    for key, variable in environment.items():
        try:
            settings[key] = os.environ[variable]
        except KeyError:
            pass

    for key in integers:
        try:
            settings[key] = int(settings[key])
        except (TypeError, ValueError):
            raise ValueError("%s must be an integer, not %r" % (key, settings[key]))

    return settings


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
