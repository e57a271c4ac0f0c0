"""
Tests for the configuration component.
"""

import pytest
import json
import sys
import os

import yaml

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from quadmath.components.config import Config, ConfigManager, load_config_file, to_int


ENV_VARS = [
    'PORT', 'HOST', 'DATABASE_URL', 'DATABASE_POOL_SIZE',
    'DATABASE_MAX_OVERFLOW', 'QUADS_DATA_DIR', 'QUADS_MAX_PLAYERS', 'LOG_LEVEL'
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    ConfigManager.reset()
    yield
    ConfigManager.reset()


class TestConfig:
    """Tests for the Config class."""
    
    def test_defaults(self):
        """Test the built-in defaults."""
        config = Config()
        
        assert config.get('server.port') == 8080
        assert config.get('database.url') is None
        assert config.get('database.enabled') is False
        assert config.get('quads.max-players') == 500
        assert config.get('analytics.neutral-value') == 5.5
        assert config.get('analytics.correlation-threshold') == 0.25
        assert config.get('analytics.shortlist-size') == 3
        assert config.get('analytics.collision-threshold') == 8.0
        assert config.get('analytics.spoke-radius') == 6.0
        assert config.get('server-url') == 'http://localhost:8080'
    
    def test_env_vars(self, monkeypatch):
        """Test that environment variables override defaults."""
        monkeypatch.setenv('PORT', '9000')
        monkeypatch.setenv('DATABASE_URL', 'sqlite:///quads.db')
        monkeypatch.setenv('QUADS_MAX_PLAYERS', 'not a number')
        monkeypatch.setenv('LOG_LEVEL', 'DEBUG')
        
        config = Config()
        
        assert config.get('server.port') == 9000
        assert config.get('database.url') == 'sqlite:///quads.db'
        assert config.get('database.enabled') is True
        assert config.get('quads.max-players') == 500
        assert config.get('logging.level') == 'debug'
    
    def test_overrides(self, monkeypatch):
        """Test that overrides win over environment variables."""
        monkeypatch.setenv('PORT', '9000')
        
        config = Config({'server': {'port': 7000}, 'analytics': {'spoke-radius': 4.0}})
        
        assert config.get('server.port') == 7000
        assert config.get('server.host') == 'localhost'
        assert config.get('analytics.spoke-radius') == 4.0
        assert config.get('analytics.collision-threshold') == 8.0
        assert config.get('server-url') == 'http://localhost:7000'
    
    def test_get_set(self):
        """Test dot-path access."""
        config = Config()
        
        config.set('quads.data-dir', '/tmp/quads')
        config.set('new.nested.value', 1)
        
        assert config.get('quads.data-dir') == '/tmp/quads'
        assert config.get('new.nested.value') == 1
        assert config.get('missing.path', 'fallback') == 'fallback'
    
    def test_save_and_load(self, tmp_path):
        """Test saving to and loading from files."""
        config = Config({'server': {'port': 7000}})
        
        json_path = str(tmp_path / 'config.json')
        yaml_path = str(tmp_path / 'config.yaml')
        config.save_to_file(json_path)
        config.save_to_file(yaml_path)
        
        assert load_config_file(json_path)['server']['port'] == 7000
        assert load_config_file(yaml_path)['server']['port'] == 7000
        
        with pytest.raises(ValueError):
            config.save_to_file(str(tmp_path / 'config.txt'))
    
    def test_load_from_file(self, tmp_path):
        """Test applying a YAML override file."""
        path = tmp_path / 'config.yml'
        path.write_text(yaml.dump({'quads': {'max-players': 12}}))
        
        config = Config()
        config.load_from_file(str(path))
        
        assert config.get('quads.max-players') == 12
    
    def test_unsupported_file(self, tmp_path):
        """Test that unknown formats are rejected."""
        with pytest.raises(ValueError):
            load_config_file(str(tmp_path / 'config.ini'))
    
    def test_to_int(self):
        """Test integer conversion."""
        assert to_int('42') == 42
        assert to_int(None) is None
        assert to_int('abc') is None


class TestConfigManager:
    """Tests for the ConfigManager singleton."""
    
    def test_singleton(self):
        """Test that the same instance is returned."""
        assert ConfigManager.get_config() is ConfigManager.get_config()
    
    def test_overrides_reload(self):
        """Test that overrides reload the existing instance."""
        config = ConfigManager.get_config()
        
        ConfigManager.get_config({'quads': {'max-players': 20}})
        
        assert config.get('quads.max-players') == 20
        assert config.get('server.port') == 8080
