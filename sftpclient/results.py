"""
The calling convention shared by `.connect` and every file operation.

Each call comes in two flavors: a plain one returning a `Result`, and an
``_or_raise`` twin (built with `raising`) returning the bare value or
raising `.OperationError`.
"""
from decorator import decorate, decorator
from .exceptions import OperationError, TransportError
from .util import debug

class Result:
    """
    Outcome of a single connect or file operation.

    Exactly one of ``value`` and ``error`` is meaningful: a successful call
    carries its return ``value`` (possibly ``None``), a failed one carries an
    `.OperationError` as ``error``. Instances are truthy when `ok`.

    .. versionadded:: 1.0
    """

    def __init__(self, value=None, error=None):
        self.value = value
        self.error = error

    def __repr__(self):
        if self.failed:
            return '<Result error={!r}>'.format(self.error)
        return '<Result value={!r}>'.format(self.value)

    def __eq__(self, other):
        if not isinstance(other, Result):
            return NotImplemented
        return (self.value, self.error) == (other.value, other.error)

    __hash__ = None

    def __bool__(self):
        return self.ok

    @property
    def ok(self):
        return self.error is None

    @property
    def failed(self):
        return not self.ok

    def unwrap(self):
        """
        Return ``value``, or raise ``error`` if the call failed.
        """
        if self.error is not None:
            raise self.error
        return self.value

def normalize(exc):
    """
    Wrap a transport exception into an `.OperationError`.

    The reason is taken verbatim: the ``reason`` of a `.TransportError`, the
    exception itself otherwise.
    """
    reason = exc.reason if isinstance(exc, TransportError) else exc
    error = OperationError(reason)
    error.__cause__ = exc
    return error

def call(errors, func, *args, **kwargs):
    """
    Call ``func`` and capture its outcome as a `Result`.

    Exceptions that are instances of ``errors`` (normally an adapter's
    ``errors`` attribute) become failed results; any other exception
    propagates.
    """
    try:
        value = func(*args, **kwargs)
    except errors as e:
        error = normalize(e)
        debug('{} failed: {}'.format(getattr(func, '__name__', func), error.message))
        return Result(error=error)
    return Result(value=value)

@decorator
def operation(func, conn, *args, **kwargs):
    """
    Run a file operation, turning its transport errors into a `Result`.

    The decorated function receives a `.Connection` first and returns its
    plain value; errors are those of ``conn.adapter``.
    """
    return call(conn.adapter.errors, func, conn, *args, **kwargs)

def _unwrap(func, *args, **kwargs):
    return func(*args, **kwargs).unwrap()

def raising(func):
    """
    Build the ``_or_raise`` twin of a `Result`-returning ``func``.
    """
    strict = decorate(func, _unwrap)
    strict.__name__ = strict.__qualname__ = '{}_or_raise'.format(func.__name__)
    strict.__doc__ = 'Like `{}`, but returns the value itself and raises `.OperationError` on failure.'.format(func.__name__)
    return strict
