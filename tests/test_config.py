"""
Configuration Tests
"""
from config import Config, TestingConfig, _database_url, config, get_config, get_parameter


class TestGetParameter:

    def test_environment_takes_precedence(self, monkeypatch):
        monkeypatch.setenv('SECRET_KEY', 'from-env')
        assert get_parameter('secret-key', 'fallback') == 'from-env'

    def test_default_without_parameter_store(self, monkeypatch):
        monkeypatch.delenv('SOME_UNSET_KEY', raising=False)
        monkeypatch.delenv('USE_PARAMETER_STORE', raising=False)
        assert get_parameter('some-unset-key', 'fallback') == 'fallback'


class TestConfigClasses:

    def test_postgres_url_rewritten(self):
        assert _database_url('postgres://u@h/db') == 'postgresql://u@h/db'
        assert _database_url('sqlite:///x.db') == 'sqlite:///x.db'

    def test_upload_limit(self):
        assert Config.MAX_CONTENT_LENGTH == 50 * 1024 * 1024
        assert Config.MIN_PASSWORD_LENGTH == 4

    def test_lookup(self):
        assert config['testing'] is TestingConfig
        assert get_config('testing') is TestingConfig
        assert get_config('nonsense') is config['default']
