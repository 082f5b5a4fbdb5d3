class SFTPClientError(Exception):
    """
    Base class for all errors raised by this package.

    .. versionadded:: 1.0
    """
    pass

class ConfigurationError(SFTPClientError, ValueError):
    """
    Raised when connection options can't be resolved into `.Settings`.

    Always raised before any network activity takes place.
    """
    pass

class TransportError(SFTPClientError):
    """
    Raised by transport adapters to report a raw failure ``reason``.

    The reason is handed to `.OperationError` untouched, so adapters may use
    whatever value makes sense to them (typically a short symbolic string
    such as ``'econnrefused'``).
    """

    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason

    def __str__(self):
        return str(self.reason)

class OperationError(SFTPClientError):
    """
    The normalized error of every failed connect or file operation.

    :param reason:
        The raw failure reason reported by the transport; either the
        ``reason`` of a `.TransportError` or the exception the transport
        raised (eg a `FileNotFoundError` from Paramiko's SFTP client).

    The ``message`` attribute (also the ``str()`` of the error) is always
    ``"Operation failed: <reason>"``. Two errors are equal when their
    reasons are.

    .. versionadded:: 1.0
    """

    def __init__(self, reason):
        self.reason = reason
        self.message = 'Operation failed: {}'.format(reason)
        super().__init__(self.message)

    def __str__(self):
        return self.message

    def __repr__(self):
        return '<{} reason={!r}>'.format(self.__class__.__name__, self.reason)

    def __eq__(self, other):
        if not isinstance(other, OperationError):
            return NotImplemented
        return self.reason == other.reason

    def __hash__(self):
        try:
            return hash(self.reason)
        except TypeError:
            return hash(type(self.reason))
