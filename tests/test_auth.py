from unittest.mock import Mock, patch
import pytest
from paramiko import Message, RSAKey, SSHException
from paramiko.auth_strategy import InMemoryPrivateKey, OnDiskPrivateKey, Password
from sftpclient.auth import KeyLookupStrategy, KeyProvider, load_key

def fake_key(name='ssh-ed25519'):
    key = Mock()
    key.get_name.return_value = name
    return key

class TestLoadKey:

    @patch('sftpclient.auth.PKey')
    def test_loads_through_paramiko(self, PKey):
        assert load_key('/keys/id_rsa', b'secret') is PKey.from_path.return_value
        PKey.from_path.assert_called_once_with('/keys/id_rsa', b'secret')

    @pytest.mark.parametrize('error', [ValueError('Bad decrypt'), TypeError('Password was not given')])
    @patch('sftpclient.auth.PKey')
    def test_parse_errors_become_ssh_exceptions(self, PKey, error):
        PKey.from_path.side_effect = error
        with pytest.raises(SSHException, match='/keys/id_rsa'):
            load_key('/keys/id_rsa')

    @patch('sftpclient.auth.PKey')
    def test_missing_files_raise_os_errors(self, PKey):
        PKey.from_path.side_effect = FileNotFoundError(2, 'No such file')
        with pytest.raises(FileNotFoundError):
            load_key('/keys/id_rsa')

class TestKeyProvider:

    def test_declines_without_a_path(self):
        assert KeyProvider().user_key() is None

    @patch('sftpclient.auth.load_key')
    def test_loads_key_with_encoded_pass_phrase(self, load_key):
        provider = KeyProvider('/keys/id_ed25519', 'secret')
        assert provider.user_key(user='admin') is load_key.return_value
        load_key.assert_called_once_with('/keys/id_ed25519', b'secret')

    @patch('sftpclient.auth.load_key')
    def test_bytes_pass_phrase_is_passed_through(self, load_key):
        KeyProvider('/keys/id_ed25519', b'secret').user_key()
        load_key.assert_called_once_with('/keys/id_ed25519', b'secret')

    @patch('sftpclient.auth.load_key')
    def test_does_not_cache_keys(self, load_key):
        provider = KeyProvider('/keys/id_ed25519')
        provider.user_key()
        provider.user_key()
        assert load_key.call_count == 2

    @patch('sftpclient.auth.load_key')
    def test_matching_key_type(self, load_key):
        load_key.return_value = fake_key('ssh-ed25519')
        provider = KeyProvider('/keys/id_ed25519')
        assert provider.user_key('ssh-ed25519') is load_key.return_value
        assert provider.user_key('ssh-rsa') is None

    def test_sign(self):
        key = fake_key()
        signature = KeyProvider().sign(key, b'data', 'rsa-sha2-256')
        key.sign_ssh_data.assert_called_once_with(b'data', 'rsa-sha2-256')
        assert signature is key.sign_ssh_data.return_value.asbytes.return_value

    def test_equality(self):
        assert KeyProvider('/a', 'x') == KeyProvider('/a', 'x')
        assert KeyProvider('/a', 'x') != KeyProvider('/a', 'y')
        assert KeyProvider() != ('/a', 'x')
        assert hash(KeyProvider('/a', 'x')) == hash(KeyProvider('/a', 'x'))

    def test_repr_hides_pass_phrase(self):
        assert repr(KeyProvider('/a', 'secret')) == "<KeyProvider path='/a'>"

class TestKeyProviderOnDisk:

    @pytest.fixture(scope='class')
    def rsa_key(self):
        return RSAKey.generate(2048)

    def test_loads_encrypted_key(self, rsa_key, tmp_path):
        path = str(tmp_path / 'id_rsa')
        rsa_key.write_private_key_file(path, password='pw')
        key = KeyProvider(path, 'pw').user_key()
        assert key.get_name() == 'ssh-rsa'
        assert key.asbytes() == rsa_key.asbytes()
        assert KeyProvider(path, b'pw').user_key('ssh-rsa').asbytes() == rsa_key.asbytes()
        assert KeyProvider(path, 'pw').user_key('ssh-ed25519') is None

    def test_loads_unencrypted_key(self, rsa_key, tmp_path):
        path = str(tmp_path / 'id_rsa')
        rsa_key.write_private_key_file(path)
        assert KeyProvider(path).user_key().asbytes() == rsa_key.asbytes()

    def test_wrong_pass_phrase(self, rsa_key, tmp_path):
        path = str(tmp_path / 'id_rsa')
        rsa_key.write_private_key_file(path, password='pw')
        with pytest.raises(SSHException, match='Unable to load private key'):
            KeyProvider(path, 'wrong').user_key()

    def test_missing_pass_phrase(self, rsa_key, tmp_path):
        path = str(tmp_path / 'id_rsa')
        rsa_key.write_private_key_file(path, password='pw')
        with pytest.raises(SSHException):
            KeyProvider(path).user_key()

    def test_signatures_verify(self, rsa_key, tmp_path):
        path = str(tmp_path / 'id_rsa')
        rsa_key.write_private_key_file(path)
        provider = KeyProvider(path)
        key = provider.user_key()
        signature = provider.sign(key, b'data', 'rsa-sha2-256')
        assert isinstance(signature, bytes)
        assert rsa_key.verify_ssh_sig(b'data', Message(signature))

@patch('sftpclient.auth.Agent')
class TestKeyLookupStrategy:

    def sources(self, **kwargs):
        kwargs.setdefault('key_dir', '/nonexistent')
        return list(KeyLookupStrategy(username='admin', **kwargs).get_sources())

    def test_nothing_to_try(self, Agent):
        Agent.return_value.get_keys.return_value = ()
        assert self.sources() == []

    def test_order_of_sources(self, Agent, tmp_path):
        agent_key = fake_key()
        Agent.return_value.get_keys.return_value = (agent_key,)
        provider = Mock()
        (tmp_path / 'id_rsa').write_text('stub')
        with patch('sftpclient.auth.load_key') as load_key:
            sources = self.sources(key_provider=provider, key_dir=str(tmp_path), password='secret')
        assert [type(x) for x in sources] == [InMemoryPrivateKey, InMemoryPrivateKey, OnDiskPrivateKey, Password]
        assert sources[0].pkey is provider.user_key.return_value
        assert sources[1].pkey is agent_key
        assert sources[2].pkey is load_key.return_value
        assert sources[2].path == str(tmp_path / 'id_rsa')
        assert sources[3].password_getter() == 'secret'
        assert all((x.username == 'admin' for x in sources))
        provider.user_key.assert_called_once_with(user='admin')

    def test_declining_key_provider(self, Agent):
        Agent.return_value.get_keys.return_value = ()
        provider = Mock()
        provider.user_key.return_value = None
        assert self.sources(key_provider=provider) == []

    @pytest.mark.parametrize('error', [FileNotFoundError(2, 'No such file'), SSHException('Bad decrypt')])
    def test_unloadable_provider_key_falls_through(self, Agent, error):
        agent_key = fake_key()
        Agent.return_value.get_keys.return_value = (agent_key,)
        provider = Mock()
        provider.user_key.side_effect = error
        sources = self.sources(key_provider=provider, password='pw')
        assert [type(x) for x in sources] == [InMemoryPrivateKey, Password]
        assert sources[0].pkey is agent_key

    def test_missing_private_key_file_falls_through(self, Agent, tmp_path):
        Agent.return_value.get_keys.return_value = ()
        provider = KeyProvider(str(tmp_path / 'missing'))
        sources = self.sources(key_provider=provider, password='pw')
        assert [type(x) for x in sources] == [Password]

    def test_user_dir_keys_use_their_own_pass_phrase(self, Agent, tmp_path):
        Agent.return_value.get_keys.return_value = ()
        for name in ('id_rsa', 'id_dsa', 'id_ecdsa', 'id_ed25519'):
            (tmp_path / name).write_text('stub')
        pass_phrases = {'rsa': b'r', 'dsa': b'd', 'ecdsa': b'e'}
        with patch('sftpclient.auth.load_key') as load_key:
            sources = self.sources(key_dir=str(tmp_path), pass_phrases=pass_phrases)
        assert [x.path for x in sources] == [str(tmp_path / x) for x in ('id_rsa', 'id_dsa', 'id_ecdsa', 'id_ed25519')]
        assert [x.args[1] for x in load_key.call_args_list] == [b'r', b'd', b'e', None]
        assert all((x.source == 'python-config' for x in sources))

    def test_unloadable_user_dir_keys_are_skipped(self, Agent, tmp_path):
        Agent.return_value.get_keys.return_value = ()
        (tmp_path / 'id_rsa').write_text('stub')
        (tmp_path / 'id_ed25519').write_text('stub')
        good = fake_key()
        with patch('sftpclient.auth.load_key', side_effect=[SSHException('encrypted'), good]):
            sources = self.sources(key_dir=str(tmp_path))
        assert [x.pkey for x in sources] == [good]

    def test_defaults_to_home_ssh_dir(self, Agent, tmp_path, monkeypatch):
        Agent.return_value.get_keys.return_value = ()
        monkeypatch.setenv('HOME', str(tmp_path))
        (tmp_path / '.ssh').mkdir()
        (tmp_path / '.ssh' / 'id_ed25519').write_text('stub')
        with patch('sftpclient.auth.load_key'):
            sources = self.sources(key_dir=None)
        assert [x.source for x in sources] == ['implicit-home']

    @patch('sftpclient.auth.getpass')
    def test_prompts_only_when_interactive(self, getpass, Agent):
        Agent.return_value.get_keys.return_value = ()
        assert self.sources() == []
        sources = self.sources(interactive=True)
        assert sources[0].password_getter() is getpass.return_value
        getpass.assert_called_once_with("admin's password: ")

    def test_closes_agent_after_authenticating(self, Agent):
        strategy = KeyLookupStrategy(username='admin')
        with patch('sftpclient.auth.AuthStrategy.authenticate', side_effect=SSHException('nope')):
            with pytest.raises(SSHException):
                strategy.authenticate(Mock())
        Agent.return_value.close.assert_called_once_with()
