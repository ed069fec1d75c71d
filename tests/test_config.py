"""
Tests for configuration loading and component wiring.
"""
import pytest

from articlegloss.core.config import (
    AnnotationConfig,
    APIConfig,
    ArticleGlossConfig,
    build_components,
)
from articlegloss.core.glossary import COMBINED
from articlegloss.core.ingest import DirectPageExtractor, MercuryExtractor

ENV_VARS = [
    "ARTICLEGLOSS_GLOSSARY_MODE", "ARTICLEGLOSS_GLOSSARY_FILE", "ARTICLEGLOSS_PARALLEL_LOOKUPS",
    "ARTICLEGLOSS_EXTRACTOR", "ARTICLEGLOSS_MERCURY_ENDPOINT", "ARTICLEGLOSS_DICTIONARY_ENDPOINT",
    "ARTICLEGLOSS_REQUEST_TIMEOUT", "ARTICLEGLOSS_DEBUG", "ARTICLEGLOSS_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestArticleGlossConfig:

    def test_defaults(self):
        config = ArticleGlossConfig()
        assert config.annotation.glossary_mode == COMBINED
        assert config.annotation.scientific
        assert config.annotation.simple_english
        assert config.api.extractor == "mercury"
        assert config.log_level == "INFO"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("ARTICLEGLOSS_GLOSSARY_MODE", "micro")
        monkeypatch.setenv("ARTICLEGLOSS_PARALLEL_LOOKUPS", "yes")
        monkeypatch.setenv("ARTICLEGLOSS_EXTRACTOR", "direct")
        monkeypatch.setenv("ARTICLEGLOSS_REQUEST_TIMEOUT", "5")
        monkeypatch.setenv("ARTICLEGLOSS_LOG_LEVEL", "warning")

        config = ArticleGlossConfig()
        assert config.annotation.glossary_mode == "micro"
        assert config.annotation.parallel_lookups
        assert config.api.extractor == "direct"
        assert config.api.request_timeout == 5
        assert config.log_level == "WARNING"

    def test_debug_wins_over_log_level(self, monkeypatch):
        monkeypatch.setenv("ARTICLEGLOSS_DEBUG", "true")
        monkeypatch.setenv("ARTICLEGLOSS_LOG_LEVEL", "ERROR")
        assert ArticleGlossConfig().log_level == "DEBUG"

    def test_bad_timeout_is_ignored(self, monkeypatch):
        monkeypatch.setenv("ARTICLEGLOSS_REQUEST_TIMEOUT", "soon")
        assert ArticleGlossConfig().api.request_timeout == 30

    def test_yaml_round_trip(self, tmp_path):
        config = ArticleGlossConfig(
            api=APIConfig(request_timeout=12, extractor="direct"),
            annotation=AnnotationConfig(glossary_mode="genetics", simple_english=False),
        )
        config.log_level = "DEBUG"
        path = tmp_path / "articlegloss.yaml"
        config.save_to_file(str(path))

        loaded = ArticleGlossConfig.load_from_file(str(path))
        assert loaded.to_dict() == config.to_dict()

    def test_partial_file(self, tmp_path):
        path = tmp_path / "partial.yaml"
        path.write_text("annotation:\n  glossary_mode: immunology\n")

        loaded = ArticleGlossConfig.load_from_file(str(path))
        assert loaded.annotation.glossary_mode == "immunology"
        assert loaded.api.request_timeout == 30

    def test_unknown_key_is_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("api:\n  no_such_setting: 1\n")
        with pytest.raises(ValueError):
            ArticleGlossConfig.load_from_file(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValueError):
            ArticleGlossConfig.load_from_file(str(tmp_path / "absent.yaml"))

    def test_to_options(self):
        options = AnnotationConfig(glossary_mode="micro", scientific=False).to_options()
        assert options.glossary_mode == "micro"
        assert not options.scientific
        assert options.simple_english


class TestBuildComponents:

    def test_default_wiring(self):
        components = build_components(ArticleGlossConfig())

        assert isinstance(components.acquirer.extractor, MercuryExtractor)
        assert components.resolver.cache is components.cache
        assert components.pipeline.resolver is components.resolver
        assert components.pipeline.glossaries is components.glossaries

    def test_direct_extractor(self):
        config = ArticleGlossConfig(api=APIConfig(extractor="direct"))
        assert isinstance(build_components(config).acquirer.extractor, DirectPageExtractor)

    def test_unknown_extractor(self):
        with pytest.raises(ValueError, match="Unknown extractor"):
            build_components(ArticleGlossConfig(api=APIConfig(extractor="readability")))

    def test_each_build_owns_its_cache(self):
        first = build_components()
        second = build_components()
        assert first.cache is not second.cache

    def test_glossary_file_is_loaded(self, tmp_path):
        path = tmp_path / "extra.yaml"
        path.write_text("micro:\n  spore: A dormant cell.\n")
        config = ArticleGlossConfig(annotation=AnnotationConfig(glossary_file=str(path)))

        components = build_components(config)
        assert components.glossaries.get("micro").get_definition("spore") == "A dormant cell."
