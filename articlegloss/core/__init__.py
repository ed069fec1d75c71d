from .acquisition import AcquisitionResult, AcquisitionState, Article, ArticleAcquirer, InvalidArticleURL
from .annotator import Annotation, AnnotationOptions, AnnotationPipeline
from .cache import CacheEntry, LookupCache
from .config import ArticleGlossConfig, Components, build_components, configure_logging
from .glossary import Glossary, GlossaryRegistry
from .resolver import DefinitionResolver

__all__ = [
    "AcquisitionResult",
    "AcquisitionState",
    "Annotation",
    "AnnotationOptions",
    "AnnotationPipeline",
    "Article",
    "ArticleAcquirer",
    "ArticleGlossConfig",
    "CacheEntry",
    "Components",
    "DefinitionResolver",
    "Glossary",
    "GlossaryRegistry",
    "InvalidArticleURL",
    "LookupCache",
    "build_components",
    "configure_logging",
]
