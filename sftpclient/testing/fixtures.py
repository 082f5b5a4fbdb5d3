"""
`pytest <https://pytest.org>`_ fixtures for testing code using sftpclient.

Import them into your ``conftest.py`` to make them available::

    from sftpclient.testing.fixtures import sftp_adapter, sftp_connection  # noqa

.. versionadded:: 1.0
"""
import pytest
from .base import MockAdapter

@pytest.fixture
def sftp_adapter():
    """
    A fresh `.MockAdapter` with no responses configured.
    """
    yield MockAdapter()

@pytest.fixture
def sftp_connection(sftp_adapter):
    """
    A `.Connection` to ``example.com`` routed through ``sftp_adapter``.

    Its channel and session handles are the strings ``'channel'`` and
    ``'session'``.
    """
    yield sftp_adapter.connection(user='tester', port=22)
