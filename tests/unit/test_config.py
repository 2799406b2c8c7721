"""Tests for configuration loading."""

import os

import pytest

from clinical_resolver.lib.config import ConfigLoader, RankerSettings, ResolverSettings
from clinical_resolver.lib.errors import ConfigurationError

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "RESOLVER_TRUST_THRESHOLD",
        "RESOLVER_KB_SEARCH_LIMIT",
        "RESOLVER_SAVINGS_PER_FREE_ANSWER",
        "RESOLVER_GENERIC_SEARCH_THRESHOLD",
        "RESOLVER_SPARSE_MATCH_THRESHOLD",
        "RESOLVER_FUZZY_SEARCH_THRESHOLD",
        "RESOLVER_SEED_FILE",
        "RESOLVER_PORT",
    ):
        monkeypatch.delenv(name, raising=False)


def _loader(tmp_path, content=None):
    if content is not None:
        (tmp_path / "resolver.yaml").write_text(content)
    return ConfigLoader(config_dir=str(tmp_path), env_file=str(tmp_path / ".env"))


def test_defaults_without_file(tmp_path):
    loader = _loader(tmp_path)

    assert loader.settings == ResolverSettings()
    assert loader.settings.trust_threshold == 0.7
    assert loader.settings.kb_search_limit == 5
    assert loader.settings.ranker == RankerSettings()
    assert loader.get_env("seed_file").endswith("knowledge_seed.yaml")


def test_file_values(tmp_path):
    loader = _loader(
        tmp_path,
        "resolver:\n  trust_threshold: 0.8\n  kb_search_limit: 3\n"
        "ranker:\n  title_weight: 4\n"
        "accounts:\n  - account_id: x\n    provider_id: ProviderA\n",
    )

    assert loader.settings.trust_threshold == 0.8
    assert loader.settings.kb_search_limit == 3
    assert loader.settings.ranker.title_weight == 4.0
    assert loader.raw["accounts"][0]["account_id"] == "x"
    assert loader.get_section("missing") == {}


def test_environment_overrides_file(tmp_path, monkeypatch):
    monkeypatch.setenv("RESOLVER_TRUST_THRESHOLD", "0.9")
    monkeypatch.setenv("RESOLVER_GENERIC_SEARCH_THRESHOLD", "0.2")
    loader = _loader(tmp_path, "resolver:\n  trust_threshold: 0.8\n")

    assert loader.settings.trust_threshold == 0.9
    assert loader.settings.ranker.generic_search_threshold == 0.2


def test_env_file_is_loaded(tmp_path):
    (tmp_path / ".env").write_text("RESOLVER_PORT=9100\n")
    try:
        loader = _loader(tmp_path)
        assert loader.get_env("port") == 9100
    finally:
        os.environ.pop("RESOLVER_PORT", None)


def test_invalid_value(tmp_path):
    with pytest.raises(ConfigurationError):
        _loader(tmp_path, "resolver:\n  trust_threshold: high\n")


def test_out_of_range_threshold(tmp_path):
    with pytest.raises(ConfigurationError):
        _loader(tmp_path, "resolver:\n  trust_threshold: 1.5\n")


def test_unknown_key(tmp_path):
    with pytest.raises(ConfigurationError):
        _loader(tmp_path, "ranker:\n  title_wieght: 2\n")


def test_malformed_yaml(tmp_path):
    with pytest.raises(ConfigurationError):
        _loader(tmp_path, "resolver: [unclosed\n")


def test_field_weights_order():
    names = [name for name, _ in RankerSettings().field_weights()]
    assert names == ["title", "diagnosis", "symptoms", "techniques", "tags", "content"]
