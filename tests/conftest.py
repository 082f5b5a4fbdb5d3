import pytest
from sftpclient import Config
from sftpclient.testing.fixtures import sftp_adapter, sftp_connection  # noqa

@pytest.fixture
def config():
    """
    A `.Config` that ignores config files and the environment.
    """
    return Config(lazy=True, overrides={'user': 'tester'})
