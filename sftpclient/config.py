import os
from collections import namedtuple
from collections.abc import Mapping
from invoke.config import Config as InvokeConfig
from invoke.exceptions import UncastableEnvVar
from .adapters import ParamikoAdapter, INFINITY
from .exceptions import ConfigurationError
from .util import get_local_user, debug
INET = 'inet'
INET6 = 'inet6'
OPTIONS = ('host', 'port', 'user', 'password', 'user_dir', 'system_dir', 'dsa_pass_phrase', 'rsa_pass_phrase', 'ecdsa_pass_phrase', 'private_key_path', 'private_key_pass_phrase', 'inet', 'sftp_vsn', 'connect_timeout', 'transport_options')
PATH_OPTIONS = ('user_dir', 'system_dir', 'private_key_path')

class Config(InvokeConfig):
    """
    An `invoke.config.Config` subclass holding connection defaults.

    It behaves like `invoke.config.Config` in every way, except that:

    - `global_defaults` is replaced with the settings listed there (port,
      user, timeouts and so on) instead of Invoke's task-runner tree;
    - config files are named after this package, e.g.
      ``/etc/sftpclient.yaml`` and ``~/.sftpclient.yaml``;
    - unless ``lazy`` is given, ``SFTPCLIENT_``-prefixed environment
      variables (e.g. ``SFTPCLIENT_PORT=2222`` or
      ``SFTPCLIENT_TIMEOUTS_CONNECT=10000``) are loaded right away.

    These are only defaults: anything given to `resolve` or `.connect`
    directly wins.

    .. versionadded:: 1.0
    """
    prefix = 'sftpclient'

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if not kwargs.get('lazy', False):
            self.load_shell_env()

    def load_shell_env(self):
        """
        Load ``SFTPCLIENT_*`` environment variables, like Invoke does.

        Values are cast to the type of the setting they override, so eg
        ``SFTPCLIENT_TIMEOUTS_CONNECT`` must be a number of milliseconds;
        ``'infinity'`` can only be set from config files or overrides.

        :raises ConfigurationError: if a variable can't be cast.
        """
        try:
            super().load_shell_env()
        except (ValueError, UncastableEnvVar) as e:
            raise ConfigurationError('Invalid {}_* environment variable: {}'.format(self.prefix.upper(), e)) from e

    @staticmethod
    def global_defaults():
        """
        Default configuration values.

        - ``port``: ``22``.
        - ``user``: the local user, as far as it can be determined.
        - ``inet``: ``'inet'`` (IPv4); ``'inet6'`` selects IPv6.
        - ``sftp_vsn``: ``None``, ie. whatever the adapter negotiates.
        - ``user_dir`` / ``system_dir``: ``None``.
        - ``timeouts.connect``: ``5000`` milliseconds; ``'infinity'``
          disables it.
        - ``transport_options``: ``{}``, extra options handed to the adapter.
        - ``adapter_class``: `.ParamikoAdapter`.

        .. versionadded:: 1.0
        """
        return {'adapter_class': ParamikoAdapter, 'inet': INET, 'port': 22, 'sftp_vsn': None, 'system_dir': None, 'timeouts': {'connect': 5000}, 'transport_options': {}, 'user': get_local_user(), 'user_dir': None}

class Settings(namedtuple('Settings', OPTIONS, defaults=(None,) * (len(OPTIONS) - 2) + ((),))):
    """
    The resolved, immutable options of a single connection.

    Build instances with `resolve`, which fills in defaults and validates;
    the constructor only supplies ``None`` for omitted fields (and an empty
    ``transport_options``).

    .. versionadded:: 1.0
    """
    __slots__ = ()

    def __repr__(self):
        bits = [('host', self.host), ('port', self.port), ('user', self.user)]
        return '<Settings {}>'.format(' '.join(('{}={}'.format(*x) for x in bits)))

def derive_shorthand(host_string):
    """
    Split ``user@host:port`` shorthand into its parts.

    Any part may be missing, in which case it's ``None``. IPv6 addresses
    (more than one ``:``) never yield a port.
    """
    user_hostport = host_string.rsplit('@', 1)
    hostport = user_hostport.pop()
    user = user_hostport[0] if user_hostport and user_hostport[0] else None
    if hostport.count(':') > 1:
        host = hostport
        port = None
    else:
        host_port = hostport.rsplit(':', 1)
        host = host_port.pop(0) or None
        port = host_port[0] if host_port and host_port[0] else None
    if port is not None:
        port = int(port)
    return {'user': user, 'host': host, 'port': port}

def resolve(options=None, config=None, **kwargs):
    """
    Turn user-supplied connection options into `.Settings`.

    :param options:
        A `.Settings` (returned as is), a mapping of option names to values,
        an iterable of ``(name, value)`` pairs, or ``None``.
    :param config:
        `.Config` providing defaults. A new one is created when ``None``.
    :param kwargs: Further options, overriding those in ``options``.

    Accepted option names are ``host`` (required; may use ``user@host:port``
    shorthand), ``port``, ``user``, ``password``, ``user_dir``,
    ``system_dir``, ``dsa_pass_phrase``, ``rsa_pass_phrase``,
    ``ecdsa_pass_phrase``, ``private_key_path``, ``private_key_pass_phrase``,
    ``inet``, ``sftp_vsn``, ``connect_timeout`` and ``transport_options``.

    Path options are expanded (``~`` included) to absolute paths; nothing is
    checked against the filesystem.

    :raises ConfigurationError:
        for unknown option names, a missing ``host``, an undeterminable
        ``user`` or malformed values.

    .. versionadded:: 1.0
    """
    if isinstance(options, Settings) and not kwargs:
        return options
    raw = collect(options)
    raw.update(kwargs)
    unknown = sorted(set(raw) - set(OPTIONS))
    if unknown:
        raise ConfigurationError('Unknown connection option(s): {}'.format(', '.join(unknown)))
    if not raw.get('host'):
        raise ConfigurationError("The 'host' option is required!")
    if config is None:
        config = Config()
    shorthand = derive_host(raw)
    values = {key: value for key, value in raw.items() if value is not None}
    values.update(shorthand)
    values.setdefault('port', config.port)
    values.setdefault('user', config.user)
    values.setdefault('inet', config.inet)
    values.setdefault('sftp_vsn', config.sftp_vsn)
    values.setdefault('user_dir', config.user_dir)
    values.setdefault('system_dir', config.system_dir)
    values.setdefault('connect_timeout', config.timeouts.connect)
    values.setdefault('transport_options', dict(config.transport_options))
    if not values['user']:
        raise ConfigurationError("Unable to determine the local user, please give the 'user' option!")
    values['port'] = to_port(values['port'])
    values['inet'] = to_inet(values['inet'])
    values['sftp_vsn'] = to_sftp_vsn(values['sftp_vsn'])
    values['connect_timeout'] = to_timeout(values['connect_timeout'])
    values['transport_options'] = to_transport_options(values['transport_options'])
    for key in PATH_OPTIONS:
        if values.get(key) is not None:
            values[key] = expand_path(values[key])
    settings = Settings(**values)
    debug('Resolved {!r}'.format(settings))
    return settings

def collect(options):
    if options is None:
        return {}
    if isinstance(options, Settings):
        return options._asdict()
    if isinstance(options, Mapping):
        return dict(options)
    try:
        return dict(options)
    except (TypeError, ValueError) as e:
        raise ConfigurationError('Options must be a mapping or (name, value) pairs, got {!r}'.format(options)) from e

def derive_host(raw):
    """
    Apply ``user@host:port`` shorthand found in ``raw['host']``.

    :raises ConfigurationError:
        if the user or port is given via both shorthand and its own option.
    """
    err = 'You supplied the {} via both shorthand and option! Please pick one.'
    if not isinstance(raw['host'], str):
        raise ConfigurationError('The host must be a string, got {!r}'.format(raw['host']))
    try:
        shorthand = derive_shorthand(raw['host'])
    except ValueError as e:
        raise ConfigurationError('Malformed host {!r}'.format(raw['host'])) from e
    if not shorthand['host']:
        raise ConfigurationError("The 'host' option is required!")
    derived = {'host': shorthand['host']}
    for key in ('user', 'port'):
        if shorthand[key] is not None:
            if raw.get(key) is not None:
                raise ConfigurationError(err.format(key))
            derived[key] = shorthand[key]
    return derived

def expand_path(path):
    return os.path.abspath(os.path.expanduser(os.fspath(path)))

def to_port(value):
    try:
        port = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError('Invalid port {!r}'.format(value)) from e
    if not 0 < port < 65536:
        raise ConfigurationError('Invalid port {!r}'.format(value))
    return port

def to_inet(value):
    if value not in (INET, INET6):
        raise ConfigurationError('Invalid inet {!r}, expected {!r} or {!r}'.format(value, INET, INET6))
    return value

def to_sftp_vsn(value):
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError('Invalid sftp_vsn {!r}'.format(value)) from e

def to_timeout(value):
    if value == INFINITY:
        return value
    if isinstance(value, bool):
        raise ConfigurationError('Invalid connect_timeout {!r}'.format(value))
    try:
        timeout = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError('Invalid connect_timeout {!r}'.format(value)) from e
    if timeout <= 0:
        raise ConfigurationError('Invalid connect_timeout {!r}'.format(value))
    return timeout

def to_transport_options(value):
    if isinstance(value, tuple):
        value = dict(value)
    if not isinstance(value, Mapping):
        raise ConfigurationError('transport_options must be a mapping, got {!r}'.format(value))
    unknown = sorted(set(value) & set(OPTIONS))
    if unknown:
        raise ConfigurationError('Give {} as regular option(s), not via transport_options'.format(', '.join(unknown)))
    return tuple(sorted(dict(value).items()))
