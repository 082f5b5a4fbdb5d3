"""
Transport adapters: the seam between this package and an SSH/SFTP engine.

Everything above this module only ever talks to an adapter object, which is
handed in explicitly (or picked from `.Config`) rather than looked up
globally; tests substitute `sftpclient.testing.MockAdapter`.
"""
import os
import socket
from paramiko import SSHException
from paramiko.client import SSHClient, AutoAddPolicy, RejectPolicy
from .auth import KeyLookupStrategy
from .exceptions import TransportError
from .util import debug
SFTP_VERSION = 3
INFINITY = 'infinity'

class SFTPAdapter:
    """
    Interface every transport adapter implements.

    ``channel`` and ``session`` are whatever `start_channel` returned; callers
    treat them as opaque. Failures are reported by raising; any exception
    listed in `errors` is turned into an `.OperationError` by the caller,
    anything else is considered a bug and propagates.

    .. versionadded:: 1.0
    """
    errors = (TransportError,)

    def start_channel(self, host, port, options):
        """
        Connect to ``host``/``port`` and open an SFTP channel.

        :param str host: Server address.
        :param int port: Server port.
        :param options:
            Sorted list of ``(key, value)`` pairs as built by
            `.build_options`. Recognized keys: ``key_provider``,
            ``quiet_mode``, ``silently_accept_hosts``, ``user_interaction``,
            ``user``, ``password``, ``user_dir``, ``system_dir``, ``inet``
            (a `socket` address family), ``sftp_vsn``, ``connect_timeout``
            (milliseconds or ``'infinity'``) and ``dsa_pass_phrase`` /
            ``rsa_pass_phrase`` / ``ecdsa_pass_phrase`` (`bytes`). Other keys
            are adapter specific.

        :returns: A ``(channel, session)`` tuple.
        """
        raise NotImplementedError

    def stop_channel(self, channel):
        raise NotImplementedError

    def close_connection(self, session):
        raise NotImplementedError

    def read_file(self, channel, path):
        raise NotImplementedError

    def write_file(self, channel, path, data):
        raise NotImplementedError

    def list_dir(self, channel, path):
        raise NotImplementedError

    def read_file_info(self, channel, path):
        raise NotImplementedError

    def read_link_info(self, channel, path):
        raise NotImplementedError

    def read_link(self, channel, path):
        raise NotImplementedError

    def make_dir(self, channel, path):
        raise NotImplementedError

    def delete_dir(self, channel, path):
        raise NotImplementedError

    def delete_file(self, channel, path):
        raise NotImplementedError

    def rename(self, channel, old_path, new_path):
        raise NotImplementedError

    def make_symlink(self, channel, link_path, target_path):
        raise NotImplementedError

    def change_mode(self, channel, path, mode):
        raise NotImplementedError

    def download_file(self, channel, remote_path, local_path):
        raise NotImplementedError

    def upload_file(self, channel, local_path, remote_path):
        raise NotImplementedError

class ParamikoAdapter(SFTPAdapter):
    """
    Adapter backed by Paramiko.

    The channel is a `~paramiko.sftp_client.SFTPClient` and the session the
    `~paramiko.client.SSHClient` it was opened from.

    .. note::
        Paramiko only speaks SFTP version 3; asking for any other
        ``sftp_vsn`` fails with the reason ``'unsupported_sftp_version'``.

    .. note::
        Paramiko never prints or prompts on its own, so ``quiet_mode`` needs
        no handling here; ``user_interaction`` only controls whether a
        missing password may be prompted for.
    """
    errors = (TransportError, SSHException, OSError, EOFError)

    def start_channel(self, host, port, options):
        opts = dict(options)
        opts.pop('quiet_mode', None)
        sftp_vsn = opts.pop('sftp_vsn', None)
        if sftp_vsn is not None and sftp_vsn != SFTP_VERSION:
            raise TransportError('unsupported_sftp_version')
        timeout = to_seconds(opts.pop('connect_timeout', INFINITY))
        family = opts.pop('inet', socket.AF_INET)
        user_dir = opts.pop('user_dir', None)
        system_dir = opts.pop('system_dir', None)
        username = opts.pop('user', None)
        credentials = dict(username=username, key_provider=opts.pop('key_provider', None), key_dir=user_dir, pass_phrases={'dsa': opts.pop('dsa_pass_phrase', None), 'rsa': opts.pop('rsa_pass_phrase', None), 'ecdsa': opts.pop('ecdsa_pass_phrase', None)}, password=opts.pop('password', None), interactive=opts.pop('user_interaction', False))
        client = SSHClient()
        if opts.pop('silently_accept_hosts', False):
            client.set_missing_host_key_policy(AutoAddPolicy())
        else:
            client.set_missing_host_key_policy(RejectPolicy())
        strategy = sock = None
        try:
            self.load_host_keys(client, user_dir, system_dir)
            # Opens an SSH agent connection.
            strategy = KeyLookupStrategy(**credentials)
            sock = open_socket(host, port, family, timeout)
            debug('Opened socket to {}:{}'.format(host, port))
            client.connect(hostname=host, port=port, username=username, sock=sock, timeout=timeout, auth_strategy=strategy, **opts)
            return (client.open_sftp(), client)
        except BaseException:
            if strategy is not None:
                strategy.close()
            client.close()
            if sock is not None:
                sock.close()
            raise

    def load_host_keys(self, client, user_dir, system_dir):
        """
        Load known host keys without ever writing back to those files.
        """
        candidates = [os.path.expanduser('~/.ssh/known_hosts')]
        if user_dir is not None:
            candidates = [os.path.join(user_dir, 'known_hosts')]
        if system_dir is not None:
            candidates.append(os.path.join(system_dir, 'ssh_known_hosts'))
        for path in candidates:
            if os.path.isfile(path):
                debug('Loading host keys from {!r}'.format(path))
                client.load_system_host_keys(path)

    def stop_channel(self, channel):
        channel.close()

    def close_connection(self, session):
        session.close()

    def read_file(self, channel, path):
        with channel.open(path, 'rb') as fd:
            return fd.read()

    def write_file(self, channel, path, data):
        with channel.open(path, 'wb') as fd:
            fd.write(data)

    def list_dir(self, channel, path):
        return sorted(channel.listdir(path))

    def read_file_info(self, channel, path):
        return channel.stat(path)

    def read_link_info(self, channel, path):
        return channel.lstat(path)

    def read_link(self, channel, path):
        target = channel.readlink(path)
        if target is None:
            raise TransportError('einval')
        return target

    def make_dir(self, channel, path):
        channel.mkdir(path)

    def delete_dir(self, channel, path):
        channel.rmdir(path)

    def delete_file(self, channel, path):
        channel.remove(path)

    def rename(self, channel, old_path, new_path):
        channel.rename(old_path, new_path)

    def make_symlink(self, channel, link_path, target_path):
        channel.symlink(target_path, link_path)

    def change_mode(self, channel, path, mode):
        channel.chmod(path, mode)

    def download_file(self, channel, remote_path, local_path):
        channel.get(remote_path, local_path)

    def upload_file(self, channel, local_path, remote_path):
        channel.put(local_path, remote_path, confirm=True)

def to_seconds(timeout):
    """
    Convert a millisecond ``connect_timeout`` into socket-style seconds.

    ``'infinity'`` maps to ``None``, ie. blocking without a timeout.
    """
    if timeout == INFINITY:
        return None
    return timeout / 1000.0

def open_socket(host, port, family, timeout):
    """
    Open a TCP connection to ``host``/``port`` using only ``family`` addresses.

    Every resolved address is tried in turn; the last error is re-raised if
    none of them accept the connection.
    """
    addresses = socket.getaddrinfo(host, port, family, socket.SOCK_STREAM)
    error = None
    for af, socktype, proto, _, sockaddr in addresses:
        sock = socket.socket(af, socktype, proto)
        sock.settimeout(timeout)
        try:
            sock.connect(sockaddr)
        except OSError as e:
            sock.close()
            error = e
            continue
        return sock
    raise error
