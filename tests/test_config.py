"""Tests for configuration management."""

import os
import tempfile
from unittest.mock import patch

import pytest
import yaml

from migrate_publish.config.config import Config, DestinationConfig, GerritConfig


class TestGerritConfig:
    """Test Gerrit host configuration."""

    def test_valid_config(self):
        """Test valid configuration creation."""
        config = GerritConfig(
            url='https://gerrit.example.com/',
            username='bot',
            password='secret',
            timeout=10,
        )

        assert config.url == 'https://gerrit.example.com'
        assert config.username == 'bot'
        assert config.password.get_secret_value() == 'secret'
        assert 'secret' not in repr(config)
        assert config.timeout == 10

    def test_url_validation(self):
        """Test URL validation."""
        for url in ['https://gerrit.com', 'http://localhost:8080/team/project']:
            assert GerritConfig(url=url).url == url

        with pytest.raises(ValueError):
            GerritConfig(url='ssh://gerrit.com:29418')

    def test_timeout_validation(self):
        """Test that timeouts must be positive."""
        with pytest.raises(ValueError):
            GerritConfig(url='https://gerrit.com', timeout=0)


class TestDestinationConfig:
    """Test destination configuration."""

    def test_defaults(self):
        """Test default values."""
        config = DestinationConfig(path='/tmp/dest.git')

        assert config.type == 'git'
        assert config.branch == 'main'
        assert config.label_name == 'GitOrigin-RevId'
        assert config.create is False

    @pytest.mark.parametrize('label', ['', 'Has Space', 'Has:Colon'])
    def test_invalid_label(self, label):
        """Test that labels must be trailer tokens."""
        with pytest.raises(ValueError):
            DestinationConfig(path='/tmp/dest', label_name=label)

    @pytest.mark.parametrize('branch', ['/main', 'bad branch', 'a~b'])
    def test_invalid_branch(self, branch):
        """Test branch name validation."""
        with pytest.raises(ValueError):
            DestinationConfig(path='/tmp/dest', branch=branch)

    def test_invalid_type(self):
        """Test that unknown destination kinds are rejected."""
        with pytest.raises(ValueError):
            DestinationConfig(path='/tmp/dest', type='s3')


class TestConfig:
    """Test main configuration class."""

    def test_empty_config(self):
        """Test that every section is optional."""
        config = Config()

        assert config.gerrit is None
        assert config.destination is None
        assert config.logging.level == 'INFO'

    def test_unknown_section(self):
        """Test that unknown sections are rejected."""
        with pytest.raises(ValueError):
            Config(migration={'users': True})

    def test_config_from_file(self):
        """Test configuration loading from YAML file."""
        config_content = """
gerrit:
  url: https://gerrit.example.com
  credentials_file: ~/.git-credentials

destination:
  type: folder
  path: /srv/publish
  label_name: Origin-Ref

logging:
  level: debug
"""

        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write(config_content)
            f.flush()

            try:
                config = Config.from_file(f.name)
                assert config.gerrit.url == 'https://gerrit.example.com'
                assert config.gerrit.credentials_file == '~/.git-credentials'
                assert config.destination.type == 'folder'
                assert config.destination.label_name == 'Origin-Ref'
                assert config.logging.level == 'DEBUG'
            finally:
                os.unlink(f.name)

    def test_missing_file(self, tmp_path):
        """Test loading a configuration file that does not exist."""
        with pytest.raises(FileNotFoundError):
            Config.from_file(str(tmp_path / 'missing.yaml'))

    def test_invalid_config_file(self):
        """Test handling of invalid configuration file."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write('invalid: yaml: content:')
            f.flush()

            try:
                with pytest.raises(Exception):
                    Config.from_file(f.name)
            finally:
                os.unlink(f.name)

    @patch('migrate_publish.config.config.load_dotenv')
    def test_config_from_env(self, mock_load_dotenv):
        """Test configuration loading from environment variables."""
        env_vars = {
            'GERRIT_URL': 'https://gerrit.example.com',
            'GERRIT_USERNAME': 'bot',
            'GERRIT_PASSWORD': 'secret',
            'GERRIT_TIMEOUT': '5',
            'DESTINATION_PATH': '/srv/dest.git',
            'DESTINATION_BRANCH': 'publish',
            'DESTINATION_CREATE': 'true',
        }

        with patch.dict(os.environ, env_vars):
            config = Config.from_env()

        assert config.gerrit.url == 'https://gerrit.example.com'
        assert config.gerrit.username == 'bot'
        assert config.gerrit.password.get_secret_value() == 'secret'
        assert config.gerrit.timeout == 5
        assert config.gerrit.use_git_credential_helper is False
        assert config.destination.path == '/srv/dest.git'
        assert config.destination.branch == 'publish'
        assert config.destination.create is True
        mock_load_dotenv.assert_called_once()

    @patch('migrate_publish.config.config.load_dotenv')
    def test_config_from_env_without_sections(self, mock_load_dotenv):
        """Test that absent variables leave sections unset."""
        with patch.dict(os.environ, {}, clear=True):
            config = Config.from_env()

        assert config.gerrit is None
        assert config.destination is None

    def test_to_file_round_trip(self, tmp_path):
        """Test saving and reloading a configuration."""
        config = Config(
            gerrit=GerritConfig(url='https://gerrit.example.com', password='secret'),
            destination=DestinationConfig(path='/srv/dest.git'),
        )
        path = tmp_path / 'out' / 'config.yaml'

        config.to_file(str(path))
        loaded = Config.from_file(str(path))

        assert loaded.gerrit.password.get_secret_value() == 'secret'
        assert loaded.destination.path == '/srv/dest.git'

    def test_create_template(self, tmp_path):
        """Test that the template is a loadable configuration."""
        path = tmp_path / 'config.yaml'

        Config.create_template(str(path))

        with open(path) as f:
            data = yaml.safe_load(f)
        assert set(data) == {'gerrit', 'destination', 'logging'}
        config = Config.from_file(str(path))
        assert config.destination.type == 'git'
