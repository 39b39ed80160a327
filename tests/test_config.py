"""
Tests for store configuration loading.
"""
import pytest

from wordlist_store import (
    ConfigError,
    DEFAULT_POOL_SIZE,
    StoreConfig,
    ValidationError,
    load_config,
)


class TestStoreConfig:
    """Tests for StoreConfig validation."""

    def test_defaults(self):
        """Test default values."""
        config = StoreConfig(storage_path="words.db")
        assert config.pool_size == DEFAULT_POOL_SIZE == 4
        assert config.seed_on_empty is False
        assert config.seed_words == ("Hello", "World")

    def test_seed_words_become_tuple(self):
        """Test that seed words are stored as a tuple."""
        config = StoreConfig(storage_path="words.db", seed_words=["a", "b"])
        assert config.seed_words == ("a", "b")

    @pytest.mark.parametrize("kwargs", [
        {"storage_path": ""},
        {"storage_path": "w.db", "pool_size": 0},
        {"storage_path": "w.db", "pool_size": "4"},
        {"storage_path": "w.db", "seed_on_empty": "yes"},
        {"storage_path": "w.db", "seed_words": "Hello"},
        {"storage_path": "w.db", "seed_words": ["ok", ""]},
    ])
    def test_invalid_values(self, kwargs):
        """Test that bad settings are rejected."""
        with pytest.raises(ValidationError):
            StoreConfig(**kwargs)


class TestLoadConfig:
    """Tests for YAML parsing."""

    def test_load_from_file(self, tmp_path):
        """Test loading a configuration from a file."""
        yaml_content = """
storage_path: /var/lib/words/words.db
pool_size: 2
seed_on_empty: true
seed_words:
  - apple
  - banana
"""
        yaml_file = tmp_path / "store.yaml"
        yaml_file.write_text(yaml_content)

        config = load_config(yaml_file)

        assert config.storage_path == "/var/lib/words/words.db"
        assert config.pool_size == 2
        assert config.seed_on_empty is True
        assert config.seed_words == ("apple", "banana")

    def test_load_from_path_string(self, tmp_path):
        """Test loading when the path is given as a string."""
        yaml_file = tmp_path / "store.yml"
        yaml_file.write_text("storage_path: words.db\n")

        config = load_config(str(yaml_file))

        assert config.storage_path == "words.db"

    def test_load_from_string(self):
        """Test loading a configuration from a YAML string."""
        config = load_config("storage_path: /tmp/words.db\npool_size: 1\n")

        assert config.storage_path == "/tmp/words.db"
        assert config.pool_size == 1

    def test_load_from_dict(self):
        """Test loading a configuration from a dictionary."""
        config = load_config({"storage_path": "words.db", "seed_on_empty": True})

        assert config.seed_on_empty is True
        assert config.pool_size == DEFAULT_POOL_SIZE

    def test_missing_file(self, tmp_path):
        """Test error for nonexistent file."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self):
        """Test error for malformed YAML."""
        with pytest.raises(ConfigError) as excinfo:
            load_config("storage_path: [unclosed\npool_size: 2\n")
        assert "Invalid YAML" in str(excinfo.value)

    def test_empty_content(self):
        """Test error for empty YAML."""
        with pytest.raises(ConfigError, match="Empty"):
            load_config("   \n")

    def test_root_must_be_mapping(self):
        """Test error when the YAML root is a list."""
        with pytest.raises(ConfigError, match="mapping"):
            load_config("- storage_path\n- pool_size\n")

    def test_missing_storage_path(self):
        """Test error for missing storage_path."""
        with pytest.raises(ConfigError, match="storage_path"):
            load_config({"pool_size": 2})

    def test_unknown_key(self):
        """Test error for unrecognised keys."""
        with pytest.raises(ConfigError, match="pool_sise"):
            load_config({"storage_path": "w.db", "pool_sise": 2})

    def test_bad_pool_size(self):
        """Test that invalid values surface as ConfigError."""
        with pytest.raises(ConfigError, match="pool_size"):
            load_config({"storage_path": "w.db", "pool_size": 0})

    def test_seed_words_must_be_list(self):
        """Test error when seed_words is a scalar."""
        with pytest.raises(ConfigError, match="seed_words"):
            load_config({"storage_path": "w.db", "seed_words": "Hello"})

    def test_config_error_is_validation_error(self):
        """Test that configuration errors are validation errors."""
        assert issubclass(ConfigError, ValidationError)
