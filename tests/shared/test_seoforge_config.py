"""Tests for layered configuration."""

from pathlib import Path

from seoforge.shared.config import (
    OnThresholdFailure,
    SeoforgeConfig,
    load_config,
    merge_cli_overrides,
)

_ENV_VARS = (
    "SEOFORGE_LLM_BACKEND",
    "SEOFORGE_MODEL",
    "OLLAMA_URL",
    "OLLAMA_MODEL",
    "UNSPLASH_ACCESS_KEY",
    "SEOFORGE_STATE_DIR",
)


def _clear_env(monkeypatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_defaults(self):
        config = SeoforgeConfig()
        assert config.generation.min_differentiation == 0.75
        assert config.generation.max_regenerations == 2
        assert config.generation.on_threshold_failure == OnThresholdFailure.RETURN_BEST_EFFORT
        assert [name for name, _ in config.paths.root_paths()] == ["site", "seo"]
        assert config.snapshot_path == Path("./data") / "blog-registry.json"
        assert not config.photos.search_enabled

    def test_drafts_are_last_sync_root(self):
        config = SeoforgeConfig()
        roots = config.paths.sync_roots()
        assert roots[:-1] == config.paths.root_paths()
        assert roots[-1] == ("drafts", Path(config.paths.drafts_dir))


class TestLoadConfig:
    def test_explicit_file(self, tmp_path: Path, monkeypatch):
        _clear_env(monkeypatch)
        path = tmp_path / "custom.toml"
        path.write_text(
            "[generation]\n"
            'on_threshold_failure = "fail"\n'
            "max_regenerations = 4\n"
            "[[paths.content_roots]]\n"
            'name = "main"\n'
            'directory = "posts"\n',
            encoding="utf-8",
        )
        config = load_config(path)
        assert config.generation.on_threshold_failure == OnThresholdFailure.FAIL
        assert config.generation.max_regenerations == 4
        assert config.paths.root_paths() == [("main", Path("posts"))]

    def test_missing_explicit_file_uses_defaults(self, tmp_path: Path, monkeypatch):
        _clear_env(monkeypatch)
        assert load_config(tmp_path / "nope.toml") == SeoforgeConfig()

    def test_malformed_file_uses_defaults(self, tmp_path: Path, monkeypatch):
        _clear_env(monkeypatch)
        path = tmp_path / "bad.toml"
        path.write_text("[generation\nbroken", encoding="utf-8")
        assert load_config(path) == SeoforgeConfig()

    def test_cwd_file(self, tmp_path: Path, monkeypatch):
        _clear_env(monkeypatch)
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".seoforge.toml").write_text('[llm]\nbackend = "ollama"\n', encoding="utf-8")
        assert load_config().llm.backend == "ollama"

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch):
        _clear_env(monkeypatch)
        path = tmp_path / "c.toml"
        path.write_text('[llm]\nbackend = "anthropic"\n', encoding="utf-8")
        monkeypatch.setenv("SEOFORGE_LLM_BACKEND", "ollama")
        monkeypatch.setenv("UNSPLASH_ACCESS_KEY", "key")
        monkeypatch.setenv("SEOFORGE_STATE_DIR", str(tmp_path / "state"))
        config = load_config(path)
        assert config.llm.backend == "ollama"
        assert config.photos.search_enabled
        assert config.state_dir == tmp_path / "state"

    def test_ollama_model_only_for_ollama(self, tmp_path: Path, monkeypatch):
        _clear_env(monkeypatch)
        monkeypatch.setenv("OLLAMA_MODEL", "llama3")
        assert load_config(tmp_path / "none.toml").llm.model is None
        monkeypatch.setenv("SEOFORGE_LLM_BACKEND", "ollama")
        assert load_config(tmp_path / "none.toml").llm.model == "llama3"


class TestMergeCliOverrides:
    def test_only_explicit_values(self):
        config = merge_cli_overrides(
            SeoforgeConfig(), backend="ollama", model=None, max_items=2, require_review=False
        )
        assert config.llm.backend == "ollama"
        assert config.llm.model is None
        assert config.batch.max_items_per_run == 2
        assert config.batch.require_review is False

    def test_unknown_keys_ignored(self):
        assert merge_cli_overrides(SeoforgeConfig(), whatever=1) == SeoforgeConfig()
