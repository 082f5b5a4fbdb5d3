import os
from getpass import getpass
from paramiko import Agent, PKey, SSHException
from paramiko.auth_strategy import AuthStrategy, Password, InMemoryPrivateKey, OnDiskPrivateKey
from paramiko.config import SSHConfig
from paramiko.pkey import UnknownKeyType
from .util import debug
USER_DIR_KEYS = (('id_rsa', 'rsa'), ('id_dsa', 'dsa'), ('id_ecdsa', 'ecdsa'), ('id_ed25519', None))

def load_key(path, pass_phrase=None):
    """
    Load the private key at ``path``, decrypting it with ``pass_phrase``.

    Key parsing failures are re-raised as `~paramiko.ssh_exception.SSHException`
    so they surface like any other transport-level error.
    """
    try:
        return PKey.from_path(path, pass_phrase)
    except (ValueError, TypeError, UnknownKeyType) as e:
        raise SSHException('Unable to load private key {}: {}'.format(path, e)) from e

class KeyProvider:
    """
    Hands the explicitly configured private key to the transport layer.

    Only the key's path and pass phrase are stored; the key itself is loaded
    on demand every time it is asked for. Deciding which *other* keys to try
    is left to the transport (see `KeyLookupStrategy`).

    :param str private_key_path: Absolute path of the private key, or ``None``.
    :param private_key_pass_phrase:
        Pass phrase decrypting that key (`str` or `bytes`), or ``None``.

    .. versionadded:: 1.0
    """

    def __init__(self, private_key_path=None, private_key_pass_phrase=None):
        self.private_key_path = private_key_path
        self.private_key_pass_phrase = private_key_pass_phrase

    def __repr__(self):
        return '<{} path={!r}>'.format(self.__class__.__name__, self.private_key_path)

    def __eq__(self, other):
        if not isinstance(other, KeyProvider):
            return False
        return self._identity() == other._identity()

    def __hash__(self):
        return hash(self._identity())

    def _identity(self):
        return (self.private_key_path, self.private_key_pass_phrase)

    def user_key(self, key_type=None, user=None):
        """
        Return the configured private key, or ``None`` to decline.

        Declines when no key path is configured, or when ``key_type`` is
        given (eg ``"ssh-ed25519"``) and the key is of another type. ``user``
        is accepted for symmetry with the lookup protocol; the same key is
        used for every user.
        """
        if self.private_key_path is None:
            return None
        pass_phrase = self.private_key_pass_phrase
        if isinstance(pass_phrase, str):
            pass_phrase = pass_phrase.encode('utf-8')
        key = load_key(self.private_key_path, pass_phrase)
        if key_type is not None and key_type != key.get_name():
            debug('Declining {} key for requested type {}'.format(key.get_name(), key_type))
            return None
        return key

    def sign(self, key, data, algorithm=None):
        """
        Sign ``data`` with ``key`` (as returned by `user_key`).

        :returns: The SSH-encoded signature, as `bytes`.
        """
        return key.sign_ssh_data(data, algorithm).asbytes()

class KeyLookupStrategy(AuthStrategy):
    """
    Auth strategy used by `.ParamikoAdapter` when opening a connection.

    Sources are tried in this order:

    - the key returned by the ``key_provider`` (if any). A key that can't be
      loaded is skipped, just like a declined one;
    - keys held by a local SSH agent;
    - ``id_rsa``, ``id_dsa``, ``id_ecdsa`` and ``id_ed25519`` from
      ``key_dir`` (``~/.ssh`` if not given), each decrypted with its own
      pass phrase from ``pass_phrases`` (keyed ``rsa``, ``dsa``, ``ecdsa``).
      Keys that can't be loaded are skipped;
    - the password, if one was given. When ``interactive`` is true and no
      password was given, the user is prompted instead.

    .. versionadded:: 1.0
    """

    def __init__(self, username, key_provider=None, key_dir=None, pass_phrases=None, password=None, interactive=False):
        super().__init__(ssh_config=SSHConfig())
        self.username = username
        self.key_provider = key_provider
        self.key_dir = key_dir
        self.pass_phrases = pass_phrases or {}
        self.password = password
        self.interactive = interactive
        self.agent = Agent()

    def get_pubkeys(self):
        if self.key_provider is not None:
            try:
                key = self.key_provider.user_key(user=self.username)
            except (SSHException, OSError) as e:
                debug('Skipping {!r}: {}'.format(self.key_provider, e))
                key = None
            if key is not None:
                yield InMemoryPrivateKey(username=self.username, pkey=key)
        for key in self.agent.get_keys():
            yield InMemoryPrivateKey(username=self.username, pkey=key)
        source = 'python-config'
        key_dir = self.key_dir
        if key_dir is None:
            source = 'implicit-home'
            key_dir = os.path.expanduser('~/.ssh')
        for filename, key_type in USER_DIR_KEYS:
            path = os.path.join(key_dir, filename)
            if not os.path.isfile(path):
                continue
            try:
                key = load_key(path, self.pass_phrases.get(key_type))
            except (SSHException, OSError) as e:
                debug('Skipping {}: {}'.format(path, e))
                continue
            yield OnDiskPrivateKey(username=self.username, source=source, path=path, pkey=key)

    def get_sources(self):
        yield from self.get_pubkeys()
        if self.password is not None:
            password = self.password
            yield Password(username=self.username, password_getter=lambda: password)
        elif self.interactive:
            prompt = "{}'s password: ".format(self.username)
            yield Password(username=self.username, password_getter=lambda: getpass(prompt))

    def authenticate(self, *args, **kwargs):
        try:
            return super().authenticate(*args, **kwargs)
        finally:
            self.close()

    def close(self):
        """
        Shut down any resources we ourselves opened up.
        """
        self.agent.close()
