''' Wrapper module to select the most performant available library to handle
    the equivalent of :func:`json.loads` and :func:`json.dumps`.
'''

# The business about conditionally importing the libraries is intended to
# avoid importing less efficient libraries if they are not available.

orjson = None
json = None

try:
    import orjson
except ImportError:
    import json


# orjson.dumps returns bytes. To maintain alignment the standard library
# version needs to do so as well.

def json_dumps(*args, **kwargs):
    return json.dumps(*args, **kwargs).encode()

if orjson is not None:
    dumps = orjson.dumps
    loads = orjson.loads
    JSONDecodeError = orjson.JSONDecodeError
else:
    dumps = json_dumps
    loads = json.loads
    JSONDecodeError = json.JSONDecodeError


def load(filename):
    """ Read and parse the JSON file *filename*.
    """

    with open(filename, 'rb') as contents:
        return loads(contents.read())


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
