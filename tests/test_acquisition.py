"""
Tests for the article acquisition state machine and its fallback order.
"""
import pytest

from articlegloss.core.acquisition import (
    NO_ABSTRACT,
    NOTICE_ABSTRACT,
    NOTICE_PMC,
    AcquisitionState,
    ArticleAcquirer,
    InvalidArticleURL,
    extract_pubmed_id,
    is_pubmed_url,
)
from articlegloss.core.ingest import BibliographicRecord, RecordFetchError

from conftest import FakeExtractor, FakeRecordFetcher

PUBMED_URL = "https://pubmed.ncbi.nlm.nih.gov/12345/"
PMC_URL = "https://www.ncbi.nlm.nih.gov/pmc/articles/PMC999/"
DOI_URL = "https://doi.org/10.1000/xyz"

S = AcquisitionState


def _page(title="Full article", author="A. Author", content="<p>Cells divide quickly.</p>"):
    return {"title": title, "author": author, "content": content}


class TestUrlClassification:

    def test_pubmed_url(self):
        assert is_pubmed_url(PUBMED_URL)
        assert not is_pubmed_url("https://example.org/article")

    def test_extract_pubmed_id(self):
        assert extract_pubmed_id(PUBMED_URL) == "12345"
        assert extract_pubmed_id("https://pubmed.ncbi.nlm.nih.gov/?term=cells") is None

    @pytest.mark.parametrize("url", ["", "   ", None])
    def test_blank_url_is_input_error(self, url):
        acquirer = ArticleAcquirer(FakeExtractor(), FakeRecordFetcher())
        with pytest.raises(InvalidArticleURL, match="Please enter a URL"):
            acquirer.acquire(url)

    def test_pubmed_url_without_id_is_input_error(self):
        fetcher = FakeRecordFetcher()
        acquirer = ArticleAcquirer(FakeExtractor(), fetcher)
        with pytest.raises(InvalidArticleURL, match="PubMed ID"):
            acquirer.acquire("https://pubmed.ncbi.nlm.nih.gov/?term=cells")
        assert fetcher.calls == []


class TestDirectFetch:

    def test_success(self):
        url = "https://example.org/article"
        extractor = FakeExtractor({url: _page()})
        result = ArticleAcquirer(extractor, FakeRecordFetcher()).acquire(url)

        assert result.ok
        assert result.trail == [S.START, S.CLASSIFY_URL, S.DIRECT_FETCH, S.DONE]
        assert result.article.title == "Full article"
        assert result.article.byline == "A. Author"
        assert result.article.body == "Cells divide quickly."
        assert result.article.tier is S.DIRECT_FETCH

    def test_failure_has_no_abstract_fallback(self):
        fetcher = FakeRecordFetcher()
        result = ArticleAcquirer(FakeExtractor(), fetcher).acquire("https://example.org/article")

        assert not result.ok
        assert result.state is S.FAILED
        assert result.reason == "Could not extract article content from this URL."
        assert fetcher.calls == []

    def test_blank_content_counts_as_failure(self):
        url = "https://example.org/article"
        extractor = FakeExtractor({url: _page(content="   ")})
        result = ArticleAcquirer(extractor, FakeRecordFetcher()).acquire(url)
        assert result.state is S.FAILED

    def test_markup_without_text_counts_as_failure(self):
        url = "https://example.org/article"
        extractor = FakeExtractor({url: _page(content="<div><script>var x;</script></div>")})
        result = ArticleAcquirer(extractor, FakeRecordFetcher()).acquire(url)
        assert result.state is S.FAILED

    def test_default_title(self):
        url = "https://example.org/article"
        extractor = FakeExtractor({url: _page(title=None, author=None)})
        article = ArticleAcquirer(extractor, FakeRecordFetcher()).acquire(url).article
        assert article.title == "Untitled article"
        assert article.byline == ""


class TestRecordFallback:

    def test_full_text_preferred(self, sample_record):
        sample_record.doi = "10.1000/xyz"
        extractor = FakeExtractor({PMC_URL: _page(), DOI_URL: _page(title="Publisher copy")})
        result = ArticleAcquirer(extractor, FakeRecordFetcher(sample_record)).acquire(PUBMED_URL)

        assert result.ok
        assert result.article.tier is S.FULL_TEXT
        assert result.article.source_url == PMC_URL
        assert extractor.calls == [PMC_URL]
        assert result.notice == NOTICE_PMC

    def test_full_text_failure_without_doi_goes_to_abstract(self, sample_record):
        extractor = FakeExtractor()
        result = ArticleAcquirer(extractor, FakeRecordFetcher(sample_record)).acquire(PUBMED_URL)

        assert result.ok
        assert result.article.body == "Cells divide."
        assert result.article.tier is S.ABSTRACT_ONLY
        assert extractor.calls == [PMC_URL]
        assert result.trail == [S.START, S.CLASSIFY_URL, S.RECORD_LOOKUP,
                                S.FULL_TEXT, S.ABSTRACT_ONLY, S.DONE]
        assert result.notice == NOTICE_ABSTRACT

    def test_redirect_tried_before_abstract(self, sample_record):
        sample_record.doi = "10.1000/xyz"
        extractor = FakeExtractor({DOI_URL: _page(title="Publisher copy")})
        result = ArticleAcquirer(extractor, FakeRecordFetcher(sample_record)).acquire(PUBMED_URL)

        assert result.ok
        assert result.article.tier is S.REDIRECT_FETCH
        assert result.article.title == "Publisher copy"
        assert extractor.calls == [PMC_URL, DOI_URL]

    def test_every_tier_fails_then_abstract(self, sample_record):
        sample_record.doi = "10.1000/xyz"
        extractor = FakeExtractor({DOI_URL: _page(content="")})
        result = ArticleAcquirer(extractor, FakeRecordFetcher(sample_record)).acquire(PUBMED_URL)

        assert result.article.tier is S.ABSTRACT_ONLY
        assert result.trail == [S.START, S.CLASSIFY_URL, S.RECORD_LOOKUP, S.FULL_TEXT,
                                S.REDIRECT_FETCH, S.ABSTRACT_ONLY, S.DONE]
        assert [state for state, _, _ in result.attempts] == [S.FULL_TEXT, S.REDIRECT_FETCH]
        assert all(error for _, _, error in result.attempts)

    def test_doi_only_record(self):
        record = BibliographicRecord(pmid="12345", title="T", doi="10.1000/xyz")
        extractor = FakeExtractor({DOI_URL: _page()})
        result = ArticleAcquirer(extractor, FakeRecordFetcher(record)).acquire(PUBMED_URL)

        assert result.article.tier is S.REDIRECT_FETCH
        assert S.FULL_TEXT not in result.trail

    def test_bare_record_goes_straight_to_abstract(self):
        record = BibliographicRecord(pmid="12345", title="T", abstract="Only the abstract.")
        extractor = FakeExtractor()
        result = ArticleAcquirer(extractor, FakeRecordFetcher(record)).acquire(PUBMED_URL)

        assert result.article.body == "Only the abstract."
        assert extractor.calls == []

    def test_abstract_article_metadata(self, sample_record):
        result = ArticleAcquirer(FakeExtractor(), FakeRecordFetcher(sample_record)).acquire(PUBMED_URL)

        article = result.article
        assert article.title == "Cell division in yeast"
        assert article.byline == "Ada Lovelace, Rosalind Franklin • Journal of Cell Science"
        assert article.source_url == PUBMED_URL

    def test_missing_abstract_placeholder(self):
        record = BibliographicRecord(pmid="12345")
        result = ArticleAcquirer(FakeExtractor(), FakeRecordFetcher(record)).acquire(PUBMED_URL)

        assert result.article.body == NO_ABSTRACT
        assert result.article.title == "Untitled"

    def test_record_lookup_failure(self):
        fetcher = FakeRecordFetcher(error=RecordFetchError("HTTP 500"))
        result = ArticleAcquirer(FakeExtractor(), fetcher).acquire(PUBMED_URL)

        assert result.state is S.FAILED
        assert result.trail[-2:] == [S.RECORD_LOOKUP, S.FAILED]
        assert fetcher.calls == ["12345"]

    def test_extractor_exceptions_are_demoted(self, sample_record):
        extractor = FakeExtractor({PMC_URL: KeyError("content")})
        result = ArticleAcquirer(extractor, FakeRecordFetcher(sample_record)).acquire(PUBMED_URL)

        assert result.ok
        assert result.article.tier is S.ABSTRACT_ONLY

    def test_custom_url_templates(self, sample_record):
        mirror = "https://mirror.example.org/pmc/PMC999"
        extractor = FakeExtractor({mirror: _page()})
        acquirer = ArticleAcquirer(extractor, FakeRecordFetcher(sample_record),
                                   pmc_article_url="https://mirror.example.org/pmc/{pmcid}")

        assert acquirer.acquire(PUBMED_URL).article.source_url == mirror
