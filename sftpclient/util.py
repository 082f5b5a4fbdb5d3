import getpass
import logging
log = logging.getLogger('sftpclient')
for x in ('debug',):
    globals()[x] = getattr(log, x)

def get_local_user():
    """
    Return the local executing username, or ``None`` if one can't be found.

    .. versionadded:: 1.0
    """
    username = None
    try:
        username = getpass.getuser()
    except (KeyError, OSError):
        pass
    return username
