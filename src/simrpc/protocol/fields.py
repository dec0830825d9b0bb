"""Protocol constants.

Keep these in one place to avoid stringly-typed message handling.
"""

import enum


class ConnectionType(enum.IntEnum):
    RPC = 0
    STREAM = 1


class ConnectionStatus(enum.IntEnum):
    OK = 0
    MALFORMED_MESSAGE = 1
    TIMEOUT = 2
    WRONG_TYPE = 3


# The server-side service that manages clients, streams and events.

CORE = 'KRPC'

ADD_EVENT = 'AddEvent'
ADD_STREAM = 'AddStream'
GET_CLIENT_ID = 'GetClientID'
GET_CLIENT_NAME = 'GetClientName'
GET_CLIENTS = 'get_Clients'
GET_SERVICES = 'GetServices'
GET_STATUS = 'GetStatus'
REMOVE_STREAM = 'RemoveStream'
SET_STREAM_RATE = 'SetStreamRate'
START_STREAM = 'StartStream'
