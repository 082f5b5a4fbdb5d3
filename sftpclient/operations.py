"""
Remote file and directory operations.

Every function takes a `.Connection` first and returns a `.Result`; its
``_or_raise`` twin returns the bare value instead and raises
`.OperationError` on failure. Failure reasons are never translated, so
callers can tell eg a missing file from a permission problem by looking at
``error.reason``::

    result = read_file(conn, 'reports/latest.csv')
    if result.failed and isinstance(result.error.reason, FileNotFoundError):
        ...

Remote paths are relative to the server's starting directory (usually the
user's home); most servers do *not* expand ``~``.
"""
from .results import operation, raising

@operation
def read_file(conn, path):
    """
    Read the whole remote file at ``path``.

    :returns: The file contents, as `bytes`.
    """
    return conn.adapter.read_file(conn.channel, path)
read_file_or_raise = raising(read_file)

@operation
def write_file(conn, path, data):
    """
    Write ``data`` to the remote file at ``path``, replacing its contents.

    ``data`` may be bytes-like or `str` (which is encoded as UTF-8).

    :returns: ``path``.
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    conn.adapter.write_file(conn.channel, path, data)
    return path
write_file_or_raise = raising(write_file)

@operation
def list_dir(conn, path):
    """
    List the entry names of the remote directory at ``path``, sorted.

    ``.`` and ``..`` are not included.
    """
    return conn.adapter.list_dir(conn.channel, path)
list_dir_or_raise = raising(list_dir)

@operation
def file_info(conn, path):
    """
    Stat ``path``, following symlinks.

    :returns: A `~paramiko.sftp_attr.SFTPAttributes` (with the default adapter).
    """
    return conn.adapter.read_file_info(conn.channel, path)
file_info_or_raise = raising(file_info)

@operation
def link_info(conn, path):
    """
    Stat ``path`` itself, without following symlinks.
    """
    return conn.adapter.read_link_info(conn.channel, path)
link_info_or_raise = raising(link_info)

@operation
def read_link(conn, path):
    """
    Return the target of the symlink at ``path``.
    """
    return conn.adapter.read_link(conn.channel, path)
read_link_or_raise = raising(read_link)

@operation
def make_dir(conn, path):
    return conn.adapter.make_dir(conn.channel, path)
make_dir_or_raise = raising(make_dir)

@operation
def delete_dir(conn, path):
    """
    Remove the (empty) remote directory at ``path``.
    """
    return conn.adapter.delete_dir(conn.channel, path)
delete_dir_or_raise = raising(delete_dir)

@operation
def delete_file(conn, path):
    return conn.adapter.delete_file(conn.channel, path)
delete_file_or_raise = raising(delete_file)

@operation
def rename(conn, old_path, new_path):
    """
    Rename ``old_path`` to ``new_path``.

    .. note::
        SFTP version 3 servers typically refuse to overwrite an existing
        ``new_path``.
    """
    return conn.adapter.rename(conn.channel, old_path, new_path)
rename_or_raise = raising(rename)

@operation
def make_symlink(conn, link_path, target_path):
    """
    Create a symlink at ``link_path`` pointing to ``target_path``.
    """
    return conn.adapter.make_symlink(conn.channel, link_path, target_path)
make_symlink_or_raise = raising(make_symlink)

@operation
def change_mode(conn, path, mode):
    """
    Change the permission bits of ``path`` to ``mode`` (e.g. ``0o644``).
    """
    return conn.adapter.change_mode(conn.channel, path, mode)
change_mode_or_raise = raising(change_mode)

@operation
def download_file(conn, remote_path, local_path):
    """
    Copy the remote file at ``remote_path`` to ``local_path``.

    :returns: ``local_path``.
    """
    conn.adapter.download_file(conn.channel, remote_path, local_path)
    return local_path
download_file_or_raise = raising(download_file)

@operation
def upload_file(conn, local_path, remote_path):
    """
    Copy the local file at ``local_path`` to ``remote_path``.

    :returns: ``remote_path``.
    """
    conn.adapter.upload_file(conn.channel, local_path, remote_path)
    return remote_path
upload_file_or_raise = raising(upload_file)
