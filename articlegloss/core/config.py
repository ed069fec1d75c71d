"""
ArticleGloss Central Configuration
Contains API endpoints, network limits and annotation defaults
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from .acquisition import DOI_RESOLVER_URL, PMC_ARTICLE_URL, ArticleAcquirer
from .annotator import AnnotationOptions, AnnotationPipeline
from .cache import LookupCache
from .glossary import COMBINED, GlossaryRegistry
from .ingest import (DEFAULT_USER_AGENT, EFETCH_ENDPOINT, MERCURY_ENDPOINT, DirectPageExtractor,
                     MercuryExtractor, PubMedClient, build_session)
from .resolver import DICTIONARY_ENDPOINT, DefinitionResolver

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("true", "1", "yes")


@dataclass
class EndpointConfig:
    """Remote services used by the pipeline"""

    mercury_endpoint: str = MERCURY_ENDPOINT
    dictionary_endpoint: str = DICTIONARY_ENDPOINT
    efetch_endpoint: str = EFETCH_ENDPOINT
    pmc_article_url: str = PMC_ARTICLE_URL
    doi_resolver_url: str = DOI_RESOLVER_URL


@dataclass
class APIConfig:
    """Configuration for network requests and limits"""

    # Timeouts
    request_timeout: int = 30
    dictionary_timeout: int = 10

    # Retries for article and record fetches; dictionary lookups never retry
    retries: int = 3

    max_concurrent_requests: int = 8
    max_content_size_mb: int = 50
    user_agent: str = DEFAULT_USER_AGENT

    # "mercury" or "direct"
    extractor: str = "mercury"


@dataclass
class AnnotationConfig:
    """Defaults for the annotation layers"""

    glossary_mode: str = COMBINED
    scientific: bool = True
    simple_english: bool = True

    # Resolve dictionary candidates in parallel before the annotation pass
    parallel_lookups: bool = False

    glossary_file: Optional[str] = None

    def to_options(self) -> AnnotationOptions:
        return AnnotationOptions(glossary_mode=self.glossary_mode,
                                 scientific=self.scientific,
                                 simple_english=self.simple_english)


@dataclass
class ArticleGlossConfig:
    """Main configuration class combining all settings"""

    endpoints: EndpointConfig
    api: APIConfig
    annotation: AnnotationConfig

    # Logging
    log_level: str = "INFO"

    def __init__(self,
                 endpoints: Optional[EndpointConfig] = None,
                 api: Optional[APIConfig] = None,
                 annotation: Optional[AnnotationConfig] = None):
        """Initialize with optional custom configurations"""
        self.endpoints = endpoints or EndpointConfig()
        self.api = api or APIConfig()
        self.annotation = annotation or AnnotationConfig()
        self.log_level = "INFO"

        # Override with environment variables if present
        self._load_env_overrides()

    def _load_env_overrides(self):
        """Load configuration overrides from environment variables"""
        if os.getenv("ARTICLEGLOSS_GLOSSARY_MODE"):
            self.annotation.glossary_mode = os.getenv("ARTICLEGLOSS_GLOSSARY_MODE")

        if os.getenv("ARTICLEGLOSS_GLOSSARY_FILE"):
            self.annotation.glossary_file = os.getenv("ARTICLEGLOSS_GLOSSARY_FILE")

        if os.getenv("ARTICLEGLOSS_PARALLEL_LOOKUPS", "").lower() in _TRUE_VALUES:
            self.annotation.parallel_lookups = True

        if os.getenv("ARTICLEGLOSS_EXTRACTOR"):
            self.api.extractor = os.getenv("ARTICLEGLOSS_EXTRACTOR")

        if os.getenv("ARTICLEGLOSS_MERCURY_ENDPOINT"):
            self.endpoints.mercury_endpoint = os.getenv("ARTICLEGLOSS_MERCURY_ENDPOINT")

        if os.getenv("ARTICLEGLOSS_DICTIONARY_ENDPOINT"):
            self.endpoints.dictionary_endpoint = os.getenv("ARTICLEGLOSS_DICTIONARY_ENDPOINT")

        timeout = os.getenv("ARTICLEGLOSS_REQUEST_TIMEOUT", "")
        if timeout.isdigit():
            self.api.request_timeout = int(timeout)

        # Debug override
        if os.getenv("ARTICLEGLOSS_DEBUG", "").lower() in _TRUE_VALUES:
            self.log_level = "DEBUG"
        elif os.getenv("ARTICLEGLOSS_LOG_LEVEL"):
            self.log_level = os.getenv("ARTICLEGLOSS_LOG_LEVEL").upper()

    @classmethod
    def load_from_file(cls, config_path: str) -> 'ArticleGlossConfig':
        """Load configuration from YAML file"""
        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}

            endpoints = EndpointConfig(**config_data.get('endpoints', {}))
            api = APIConfig(**config_data.get('api', {}))
            annotation = AnnotationConfig(**config_data.get('annotation', {}))

            config = cls(endpoints=endpoints, api=api, annotation=annotation)

            if 'log_level' in config_data:
                config.log_level = str(config_data['log_level']).upper()

            return config

        except (OSError, TypeError, yaml.YAMLError) as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'endpoints': dict(vars(self.endpoints)),
            'api': dict(vars(self.api)),
            'annotation': dict(vars(self.annotation)),
            'log_level': self.log_level,
        }

    def save_to_file(self, config_path: str):
        """Save configuration to YAML file"""
        with open(config_path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, indent=2)


def configure_logging(level: str = "INFO"):
    """Apply the configured log level to the root logger"""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass
class Components:
    """Everything one session needs; each session owns its own cache"""

    config: ArticleGlossConfig
    glossaries: GlossaryRegistry
    cache: LookupCache
    resolver: DefinitionResolver
    pipeline: AnnotationPipeline
    acquirer: ArticleAcquirer


def build_components(config: Optional[ArticleGlossConfig] = None) -> Components:
    """Wire glossaries, cache, resolver, pipeline and acquirer from a config"""
    config = config or ArticleGlossConfig()

    glossaries = GlossaryRegistry()
    if config.annotation.glossary_file:
        glossaries.load_file(config.annotation.glossary_file)

    cache = LookupCache("dictionary")
    resolver = DefinitionResolver(
        cache=cache,
        session=build_session(retries=0, user_agent=config.api.user_agent),
        endpoint=config.endpoints.dictionary_endpoint,
        timeout=config.api.dictionary_timeout,
    )
    pipeline = AnnotationPipeline(
        glossaries,
        resolver,
        prefetch=config.annotation.parallel_lookups,
        max_workers=config.api.max_concurrent_requests,
    )

    session = build_session(retries=config.api.retries, user_agent=config.api.user_agent)
    if config.api.extractor == "direct":
        extractor = DirectPageExtractor(session=session,
                                        timeout=config.api.request_timeout,
                                        max_size_mb=config.api.max_content_size_mb)
    elif config.api.extractor == "mercury":
        extractor = MercuryExtractor(session=session,
                                     endpoint=config.endpoints.mercury_endpoint,
                                     timeout=config.api.request_timeout)
    else:
        raise ValueError(f"Unknown extractor: {config.api.extractor}")

    acquirer = ArticleAcquirer(
        extractor,
        PubMedClient(session=session,
                     endpoint=config.endpoints.efetch_endpoint,
                     timeout=config.api.request_timeout),
        pmc_article_url=config.endpoints.pmc_article_url,
        doi_resolver_url=config.endpoints.doi_resolver_url,
    )

    logger.debug(f"Built components (extractor={config.api.extractor}, "
                 f"parallel_lookups={config.annotation.parallel_lookups})")
    return Components(config, glossaries, cache, resolver, pipeline, acquirer)
