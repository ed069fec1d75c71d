"""
ArticleGloss Annotation Pipeline
Tokenizes article text, classifies each token and renders inline annotations
"""

import html
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .classifiers import Classification, TermClassifier
from .glossary import COMBINED, GlossaryRegistry
from .resolver import DefinitionResolver
from .tokens import normalize_word, tokenize

logger = logging.getLogger(__name__)

SCIENTIFIC = "scientific"
SIMPLE_ENGLISH = "simple-english"
PLAIN = "plain"

SIMPLE_ENGLISH_LABEL = "Simple English dictionary"


@dataclass(frozen=True)
class AnnotationOptions:
    """Glossary selection and the two independent layer switches"""

    glossary_mode: str = COMBINED
    scientific: bool = True
    simple_english: bool = True


@dataclass(frozen=True)
class Annotation:
    """A token after classification; plain tokens carry no definition"""

    raw: str
    key: str
    kind: str = PLAIN
    definition: Optional[str] = None
    source: Optional[str] = None

    @property
    def is_annotated(self) -> bool:
        return self.kind != PLAIN

    def to_markup(self) -> str:
        if self.kind == SCIENTIFIC:
            return (f'<span class="sci-term" data-term="{html.escape(self.key)}" '
                    f'data-definition="{html.escape(self.definition or "")}" '
                    f'data-source="{html.escape(self.source or "")}">'
                    f'{html.escape(self.raw)}</span>')
        if self.kind == SIMPLE_ENGLISH:
            return (f'<span class="simple-term" data-term="{html.escape(self.key)}">'
                    f'{html.escape(self.raw)}</span>')
        return html.escape(self.raw, quote=False)

    def to_dict(self) -> dict:
        return {
            'raw': self.raw,
            'key': self.key,
            'kind': self.kind,
            'definition': self.definition,
            'source': self.source,
        }


class AnnotationPipeline:
    """
    Produces annotated markup for plain article text.

    Scientific terms come from the in-memory glossaries; simple English
    definitions come from the resolver and its cache. A token is annotated by
    at most one layer, scientific first.
    """

    def __init__(self,
                 glossaries: GlossaryRegistry,
                 resolver: DefinitionResolver,
                 classifier: Optional[TermClassifier] = None,
                 prefetch: bool = False,
                 max_workers: int = 8):
        """
        Initialize the pipeline

        Args:
            glossaries: Registry with the domain and combined glossaries
            resolver: Dictionary resolver for the simple English layer
            classifier: Classifier to use (default heuristics if None)
            prefetch: Resolve all lookup candidates in parallel before the pass
            max_workers: Thread pool size for prefetching
        """
        self.glossaries = glossaries
        self.resolver = resolver
        self.classifier = classifier or TermClassifier()
        self.prefetch = prefetch
        self.max_workers = max_workers

    def annotate_tokens(self, text: str, options: Optional[AnnotationOptions] = None) -> List[Annotation]:
        """
        Classify every token of the text, in order

        Args:
            text: Plain article text
            options: Glossary mode and layer switches

        Returns:
            One Annotation per token; unmatched tokens have kind "plain"
        """
        options = options or AnnotationOptions()
        glossary = self.glossaries.get(options.glossary_mode)
        tokens = tokenize(text)

        classes = [self.classifier.classify(token, glossary,
                                            scientific=options.scientific,
                                            simple_english=options.simple_english)
                   for token in tokens]

        if self.prefetch and options.simple_english:
            candidates = [token.key for token, cls in zip(tokens, classes)
                          if cls is Classification.SIMPLE_CANDIDATE]
            self.resolver.prefetch(candidates, max_workers=self.max_workers)

        result = []
        for token, cls in zip(tokens, classes):
            if cls is Classification.SCIENTIFIC:
                result.append(Annotation(token.raw, token.key, SCIENTIFIC,
                                         glossary.get_definition(token.key), glossary.label))
                continue

            if cls is Classification.SIMPLE_CANDIDATE:
                entry = self.resolver.resolve(token.key)
                if entry.found:
                    result.append(Annotation(token.raw, token.key, SIMPLE_ENGLISH,
                                             entry.definition, SIMPLE_ENGLISH_LABEL))
                    continue

            result.append(Annotation(token.raw, token.key))

        annotated = sum(1 for a in result if a.is_annotated)
        logger.debug(f"Annotated {annotated} of {len(result)} tokens "
                     f"(mode={options.glossary_mode})")
        return result

    def annotate(self, text: str, options: Optional[AnnotationOptions] = None) -> str:
        """
        Annotate text and render it as markup

        Args:
            text: Plain article text
            options: Glossary mode and layer switches

        Returns:
            Markup string with sci-term / simple-term spans
        """
        return "".join(a.to_markup() for a in self.annotate_tokens(text, options))

    def explain(self, term: str, options: Optional[AnnotationOptions] = None) -> Optional[Tuple[str, str]]:
        """
        Definition and source label for a rendered term

        Args:
            term: The data-term value of a rendered annotation
            options: Glossary mode and layer switches in effect

        Returns:
            (definition, source) or None if nothing is known
        """
        options = options or AnnotationOptions()
        key = normalize_word(term)
        if not key:
            return None

        if options.scientific:
            glossary = self.glossaries.get(options.glossary_mode)
            definition = glossary.get_definition(key)
            if definition is not None:
                return definition, glossary.label

        if not options.simple_english or not self.classifier.is_lookup_candidate(key):
            return None

        definition = self.resolver.resolve_definition(key)
        if definition is None:
            return None
        return definition, SIMPLE_ENGLISH_LABEL

    def resolve_definition(self, term: str, options: Optional[AnnotationOptions] = None) -> Optional[str]:
        explained = self.explain(term, options)
        return explained[0] if explained else None
