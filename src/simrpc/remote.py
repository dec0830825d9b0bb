""" Value representation of server-side objects.
"""


class RemoteObject:
    """ A :class:`RemoteObject` identifies a piece of server-side state by
        its *type_name* and numeric *id*. It is a plain value: two instances
        with the same type and id compare equal and hash the same, and
        nothing happens on the server when an instance is garbage collected.
        Deleting the server-side object requires an explicit remote call.

        An id of zero means "no object"; decoding such a reference yields
        None rather than a :class:`RemoteObject`.
    """

    __slots__ = ('type_name', 'id')

    def __init__(self, type_name, id):

        id = int(id)
        if id < 0:
            raise ValueError('object id must be non-negative: ' + str(id))

        object.__setattr__(self, 'type_name', str(type_name))
        object.__setattr__(self, 'id', id)


    def __setattr__(self, name, value):
        raise AttributeError('RemoteObject instances are immutable')


    def __eq__(self, other):
        if isinstance(other, RemoteObject):
            return self.type_name == other.type_name and self.id == other.id
        return NotImplemented


    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result


    def __hash__(self):
        return hash((self.type_name, self.id))


    def __bool__(self):
        return self.id != 0


    def __repr__(self):
        return "<%s #%d>" % (self.type_name, self.id)


# end of class RemoteObject


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
