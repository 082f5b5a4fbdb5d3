from ._version import __version_info__, __version__
from .adapters import SFTPAdapter, ParamikoAdapter, INFINITY
from .auth import KeyProvider
from .config import Config, Settings, INET, INET6, resolve
from .connection import Connection, build_options, connect, connect_or_raise, disconnect, disconnect_or_raise
from .exceptions import SFTPClientError, ConfigurationError, OperationError, TransportError
from .operations import change_mode, change_mode_or_raise, delete_dir, delete_dir_or_raise, delete_file, delete_file_or_raise, download_file, download_file_or_raise, file_info, file_info_or_raise, link_info, link_info_or_raise, list_dir, list_dir_or_raise, make_dir, make_dir_or_raise, make_symlink, make_symlink_or_raise, read_file, read_file_or_raise, read_link, read_link_or_raise, rename, rename_or_raise, upload_file, upload_file_or_raise, write_file, write_file_or_raise
from .results import Result
