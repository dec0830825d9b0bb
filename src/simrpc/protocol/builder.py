""" Construction of call descriptors.
"""

from .message import Argument, ProcedureCall


def build_call(service, procedure, args=()):
    """ Assemble a :class:`simrpc.protocol.message.ProcedureCall` for the
        named *service* and *procedure*. The *args* are the already-encoded
        arguments, in the order of the remote signature; no validation is
        performed against that signature, that is the responsibility of the
        caller.

        An argument passed as None is left out of the descriptor, but still
        occupies its position; the server applies the default value for any
        skipped or trailing argument. Callers can therefore simply omit
        trailing default-valued arguments.
    """

    arguments = list()

    for position, value in enumerate(args):
        if value is None:
            continue

        arguments.append(Argument(position=position, value=bytes(value)))

    return ProcedureCall(service=service, procedure=procedure, arguments=arguments)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
