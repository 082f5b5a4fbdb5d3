import socket
from operator import itemgetter
from .auth import KeyProvider
from .config import Config, INET6, resolve
from .results import Result, call, raising
from .util import debug
FORWARDED_OPTIONS = ('user', 'password', 'user_dir', 'system_dir', 'inet', 'sftp_vsn', 'connect_timeout', 'dsa_pass_phrase', 'rsa_pass_phrase', 'ecdsa_pass_phrase')
PASS_PHRASE_OPTIONS = ('dsa_pass_phrase', 'rsa_pass_phrase', 'ecdsa_pass_phrase')
FORCED_OPTIONS = (('quiet_mode', True), ('silently_accept_hosts', True), ('user_interaction', False))

class Connection:
    """
    An open SFTP channel to a server, as returned by `connect`.

    Connections are never built by hand outside of tests; they only come out
    of a successful `connect` and never change afterwards. File operations
    (see `sftpclient.operations`) take one as their first argument.

    :param settings: The `.Settings` the connection was opened with.
    :param channel: Opaque SFTP channel handle from the adapter.
    :param session: Opaque transport session handle from the adapter.
    :param adapter:
        The transport adapter that opened the connection and that every
        operation on it is routed through.

    Connections are context managers; leaving the ``with`` block calls
    `disconnect`, whose failure is only raised when the block itself didn't
    raise::

        with connect_or_raise(host='example.com') as conn:
            data = read_file_or_raise(conn, 'report.csv')

    .. versionadded:: 1.0
    """
    __slots__ = ('_settings', '_channel', '_session', '_adapter')

    def __init__(self, settings, channel, session, adapter):
        object.__setattr__(self, '_settings', settings)
        object.__setattr__(self, '_channel', channel)
        object.__setattr__(self, '_session', session)
        object.__setattr__(self, '_adapter', adapter)

    def __setattr__(self, name, value):
        raise AttributeError('{} objects are immutable'.format(self.__class__.__name__))

    @property
    def settings(self):
        return self._settings

    @property
    def channel(self):
        return self._channel

    @property
    def session(self):
        return self._session

    @property
    def adapter(self):
        return self._adapter

    def __repr__(self):
        bits = [('host', self.settings.host), ('port', self.settings.port), ('user', self.settings.user)]
        return '<Connection {}>'.format(' '.join(('{}={}'.format(*x) for x in bits)))

    def __eq__(self, other):
        if not isinstance(other, Connection):
            return False
        return self._identity() == other._identity()

    def __hash__(self):
        return hash((self.settings.host, self.settings.port, self.settings.user))

    def _identity(self):
        return (self.settings, self.channel, self.session)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, *exc):
        # Errors from the with body take precedence over errors closing.
        if exc_type is None:
            disconnect_or_raise(self)
        else:
            disconnect(self)

def dump_option(key, value):
    """
    Convert a `.Settings` value into the form adapters expect.
    """
    if key in PASS_PHRASE_OPTIONS and isinstance(value, str):
        return value.encode('utf-8')
    if key == 'inet':
        return socket.AF_INET6 if value == INET6 else socket.AF_INET
    return value

def build_options(settings):
    """
    Assemble the sorted ``(key, value)`` option list handed to the adapter.

    ``transport_options`` come first, then every non-``None`` setting from
    `FORWARDED_OPTIONS`, then the key provider and finally the forced
    ``quiet_mode``, ``silently_accept_hosts`` and ``user_interaction`` flags,
    which therefore always win. Options whose value is ``None`` are left out
    entirely.

    .. versionadded:: 1.0
    """
    options = {key: value for key, value in settings.transport_options if value is not None}
    for key in FORWARDED_OPTIONS:
        value = getattr(settings, key)
        if value is not None:
            options[key] = dump_option(key, value)
    options['key_provider'] = KeyProvider(private_key_path=settings.private_key_path, private_key_pass_phrase=settings.private_key_pass_phrase)
    options.update(FORCED_OPTIONS)
    return sorted(options.items(), key=itemgetter(0))

def connect(options=None, adapter=None, config=None, **kwargs):
    """
    Connect to an SSH server and open an SFTP channel.

    :param options:
        Connection options as a mapping, ``(name, value)`` pairs or
        `.Settings`; see `.resolve` for the accepted names. Keyword arguments
        are merged on top, so ``connect(host='example.com', port=2222)``
        works too.
    :param adapter:
        Transport adapter to use. Default: a new instance of
        ``config.adapter_class`` (`.ParamikoAdapter` unless configured
        otherwise).
    :param config: `.Config` supplying defaults. Default: ``Config()``.

    :returns:
        A `.Result` whose value is the new `.Connection`, or whose error is
        the `.OperationError` describing why connecting failed.

    :raises ConfigurationError:
        immediately (and without touching the network) if the options don't
        resolve.

    .. warning::
        Unknown host keys are always accepted, and the transport is never
        allowed to prompt for anything.

    .. versionadded:: 1.0
    """
    if config is None:
        config = Config()
    settings = resolve(options, config=config, **kwargs)
    if adapter is None:
        adapter = config.adapter_class()
    debug('Connecting to {}@{}:{}'.format(settings.user, settings.host, settings.port))
    result = call(adapter.errors, adapter.start_channel, settings.host, settings.port, build_options(settings))
    if result.failed:
        return result
    channel, session = result.value
    debug('Connected to {}:{}'.format(settings.host, settings.port))
    return Result(value=Connection(settings, channel, session, adapter))
connect_or_raise = raising(connect)

def disconnect(conn):
    """
    Close the SFTP channel of ``conn`` and then its transport session.

    :returns: A `.Result` with value ``None``, or the error of whichever
        close step failed.

    .. versionadded:: 1.0
    """
    debug('Disconnecting from {}:{}'.format(conn.settings.host, conn.settings.port))
    result = call(conn.adapter.errors, conn.adapter.stop_channel, conn.channel)
    if result.failed:
        return result
    result = call(conn.adapter.errors, conn.adapter.close_connection, conn.session)
    if result.failed:
        return result
    return Result(value=None)
disconnect_or_raise = raising(disconnect)
