import json

import pytest

from docchat.config_manager import ConfigManager


@pytest.fixture
def config(tmp_path):
    return ConfigManager(tmp_path / "config.json")


def test_defaults_are_written(config, tmp_path):
    saved = json.loads((tmp_path / "config.json").read_text())

    assert saved["chunk_size"] == 1000
    assert saved["chunk_overlap"] == 200
    assert saved["top_k"] == 5
    assert config.get("total_queries") == 0


def test_update_returns_changed_fields(config):
    assert config.update(top_k=3, chunk_size=1000, temperature=None) == ["top_k"]
    assert config.get("top_k") == 3


def test_update_rejects_unknown_and_read_only_keys(config):
    with pytest.raises(ValueError, match="colour"):
        config.update(colour="blue")
    with pytest.raises(ValueError, match="total_queries"):
        config.update(total_queries=10)


def test_overlap_must_be_smaller_than_chunk_size(config):
    with pytest.raises(ValueError):
        config.update(chunk_size=300, chunk_overlap=300)
    assert config.get("chunk_size") == 1000


def test_changes_persist(config, tmp_path):
    config.update(model="mistral")
    config.increment_queries()

    reloaded = ConfigManager(tmp_path / "config.json")
    assert reloaded.get("model") == "mistral"
    assert reloaded.get("total_queries") == 1
