"""
Test fixtures for the ArticleGloss pipeline.

Network collaborators are replaced by MagicMock sessions: a dictionary session
answers from an in-memory table and counts calls, so cache behaviour can be
asserted by the number of GET requests.
"""
from unittest.mock import MagicMock
from urllib.parse import unquote

import pytest
import requests

from articlegloss.core.annotator import AnnotationPipeline
from articlegloss.core.cache import LookupCache
from articlegloss.core.glossary import GlossaryRegistry
from articlegloss.core.ingest import BibliographicRecord
from articlegloss.core.resolver import DICTIONARY_ENDPOINT, DefinitionResolver


def make_response(status=200, payload=None, text="", json_error=False):
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 400
    response.text = text
    if json_error:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = payload
    return response


def dictionary_payload(definition):
    return [{
        "word": "word",
        "meanings": [
            {"partOfSpeech": "adjective",
             "definitions": [{"definition": definition}, {"definition": "A later sense."}]},
            {"partOfSpeech": "noun",
             "definitions": [{"definition": "Another meaning."}]},
        ],
    }]


@pytest.fixture
def dictionary_session():
    """
    Session answering dictionary lookups from ``session.definitions``.

    Words absent from the table get a 404, like the real API.
    """
    session = MagicMock(spec=requests.Session)
    session.definitions = {
        "ubiquitous": "Present, appearing, or found everywhere.",
        "spread": "To stretch out; to extend.",
        "divide": "To split into two or more parts.",
    }

    def _get(url, timeout=None, **kwargs):
        word = unquote(url[len(DICTIONARY_ENDPOINT):])
        if word in session.definitions:
            return make_response(200, dictionary_payload(session.definitions[word]))
        return make_response(404, {"title": "No Definitions Found"})

    session.get.side_effect = _get
    return session


@pytest.fixture
def registry():
    return GlossaryRegistry()


@pytest.fixture
def cache():
    return LookupCache("dictionary")


@pytest.fixture
def resolver(cache, dictionary_session):
    return DefinitionResolver(cache=cache, session=dictionary_session)


@pytest.fixture
def pipeline(registry, resolver):
    return AnnotationPipeline(registry, resolver)


class FakeExtractor:
    """Extractor returning canned results per URL; anything else raises"""

    def __init__(self, pages=None):
        self.pages = pages or {}
        self.calls = []

    def extract(self, url):
        self.calls.append(url)
        page = self.pages.get(url)
        if page is None:
            raise RuntimeError(f"Mercury Parser request failed for {url}")
        if isinstance(page, Exception):
            raise page
        return page


class FakeRecordFetcher:
    def __init__(self, record=None, error=None):
        self.record = record
        self.error = error
        self.calls = []

    def fetch_record(self, pmid):
        self.calls.append(pmid)
        if self.error is not None:
            raise self.error
        return self.record


@pytest.fixture
def sample_record():
    return BibliographicRecord(
        pmid="12345",
        title="Cell division in yeast",
        journal="Journal of Cell Science",
        authors=["Ada Lovelace", "Rosalind Franklin"],
        doi=None,
        pmcid="PMC999",
        abstract="Cells divide.",
    )
