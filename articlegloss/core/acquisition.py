"""
ArticleGloss Article Acquisition
Resolves a user URL to one Article through the full text / DOI / abstract fallback chain
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .ingest import BibliographicRecord, html_to_text

logger = logging.getLogger(__name__)

PUBMED_HOST = "pubmed.ncbi.nlm.nih.gov"
PMC_ARTICLE_URL = "https://www.ncbi.nlm.nih.gov/pmc/articles/{pmcid}/"
DOI_RESOLVER_URL = "https://doi.org/{doi}"

NO_ABSTRACT = "No abstract available."

NOTICE_PMC = "Using PMC full text (open access)."
NOTICE_DOI = "Trying publisher full text via DOI…"
NOTICE_ABSTRACT = "Full text unavailable. Using PubMed abstract."

_PUBMED_ID_PATTERN = re.compile(r'pubmed\.ncbi\.nlm\.nih\.gov/(\d+)')


class InvalidArticleURL(ValueError):
    """The URL cannot start an acquisition (blank, or a record URL without an identifier)"""


class AcquisitionState(Enum):
    START = "start"
    CLASSIFY_URL = "classify-url"
    DIRECT_FETCH = "direct-fetch"
    RECORD_LOOKUP = "record-lookup"
    FULL_TEXT = "full-text"
    REDIRECT_FETCH = "redirect-fetch"
    ABSTRACT_ONLY = "abstract-only"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class Article:
    """Resolved content bundle; body is plain text"""

    title: str
    byline: str
    body: str
    source_url: str
    tier: AcquisitionState


@dataclass
class AcquisitionResult:
    """Outcome of one acquisition, with the states it went through"""

    state: AcquisitionState
    article: Optional[Article] = None
    reason: Optional[str] = None
    notice: str = ""
    record: Optional[BibliographicRecord] = None
    trail: List[AcquisitionState] = field(default_factory=list)
    attempts: List[Tuple[AcquisitionState, str, Optional[str]]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state is AcquisitionState.DONE and self.article is not None


def is_pubmed_url(url: str) -> bool:
    return PUBMED_HOST in url


def extract_pubmed_id(url: str) -> Optional[str]:
    match = _PUBMED_ID_PATTERN.search(url)
    return match.group(1) if match else None


def abstract_article(record: BibliographicRecord, source_url: str) -> Article:
    """Article built from the record alone"""
    return Article(
        title=record.title or "Untitled",
        byline=record.byline,
        body=record.abstract or NO_ABSTRACT,
        source_url=source_url,
        tier=AcquisitionState.ABSTRACT_ONLY,
    )


class ArticleAcquirer:
    """
    Drives the acquisition state machine.

    Non-record URLs are extracted directly and fail when extraction fails.
    Record URLs fetch the PubMed record first, then try PMC full text, then
    the DOI redirect, then fall back to the abstract, which always succeeds.
    """

    def __init__(self,
                 extractor,
                 record_fetcher,
                 to_plain_text: Callable[[str], str] = html_to_text,
                 pmc_article_url: str = PMC_ARTICLE_URL,
                 doi_resolver_url: str = DOI_RESOLVER_URL):
        """
        Initialize the acquirer

        Args:
            extractor: Object with extract(url) -> {"title", "author", "content"}
            record_fetcher: Object with fetch_record(pmid) -> BibliographicRecord
            to_plain_text: HTML-to-text conversion applied to extracted content
            pmc_article_url: Template for PMC full text URLs ({pmcid})
            doi_resolver_url: Template for DOI redirect URLs ({doi})
        """
        self.extractor = extractor
        self.record_fetcher = record_fetcher
        self.to_plain_text = to_plain_text
        self.pmc_article_url = pmc_article_url
        self.doi_resolver_url = doi_resolver_url

    def acquire(self, url: str) -> AcquisitionResult:
        """
        Resolve a URL to an Article

        Args:
            url: User-supplied article or PubMed URL

        Returns:
            AcquisitionResult in state DONE or FAILED
        """
        url = (url or "").strip()
        if not url:
            raise InvalidArticleURL("Please enter a URL.")

        result = AcquisitionResult(state=AcquisitionState.START,
                                   trail=[AcquisitionState.START])
        self._enter(result, AcquisitionState.CLASSIFY_URL)

        if not is_pubmed_url(url):
            return self._acquire_direct(url, result)

        pmid = extract_pubmed_id(url)
        if not pmid:
            raise InvalidArticleURL("Could not extract PubMed ID.")

        return self._acquire_record(url, pmid, result)

    def _acquire_direct(self, url: str, result: AcquisitionResult) -> AcquisitionResult:
        self._enter(result, AcquisitionState.DIRECT_FETCH)
        article = self._try_full_text(url, AcquisitionState.DIRECT_FETCH, result)
        if article is not None:
            return self._done(result, article)
        return self._fail(result, "Could not extract article content from this URL.")

    def _acquire_record(self, url: str, pmid: str, result: AcquisitionResult) -> AcquisitionResult:
        self._enter(result, AcquisitionState.RECORD_LOOKUP)
        try:
            record = self.record_fetcher.fetch_record(pmid)
        except Exception as e:
            logger.warning(f"PubMed record lookup failed for {pmid}: {e}")
            result.attempts.append((AcquisitionState.RECORD_LOOKUP, pmid, str(e)))
            return self._fail(result, f"Could not fetch PubMed record {pmid}.")

        result.record = record

        for state, target, notice in self._full_text_tiers(record):
            self._enter(result, state)
            result.notice = notice
            article = self._try_full_text(target, state, result)
            if article is not None:
                return self._done(result, article)

        self._enter(result, AcquisitionState.ABSTRACT_ONLY)
        result.notice = NOTICE_ABSTRACT
        return self._done(result, abstract_article(record, url))

    def _full_text_tiers(self, record: BibliographicRecord) -> List[Tuple[AcquisitionState, str, str]]:
        tiers = []
        if record.pmcid:
            tiers.append((AcquisitionState.FULL_TEXT,
                          self.pmc_article_url.format(pmcid=record.pmcid), NOTICE_PMC))
        if record.doi:
            tiers.append((AcquisitionState.REDIRECT_FETCH,
                          self.doi_resolver_url.format(doi=record.doi), NOTICE_DOI))
        return tiers

    def _try_full_text(self, target: str, state: AcquisitionState,
                       result: AcquisitionResult) -> Optional[Article]:
        """Run the extractor; any failure or blank content yields None"""
        try:
            data: Dict[str, Any] = self.extractor.extract(target) or {}
            content = data.get('content') or ""
            if not content.strip():
                raise ValueError("Empty full text returned")

            body = self.to_plain_text(content)
            if not body.strip():
                raise ValueError("Full text has no readable content")

        except Exception as e:
            logger.warning(f"{state.value} failed for {target}: {e}")
            result.attempts.append((state, target, str(e)))
            return None

        result.attempts.append((state, target, None))
        return Article(
            title=data.get('title') or "Untitled article",
            byline=data.get('author') or "",
            body=body,
            source_url=target,
            tier=state,
        )

    @staticmethod
    def _enter(result: AcquisitionResult, state: AcquisitionState):
        result.state = state
        result.trail.append(state)

    def _done(self, result: AcquisitionResult, article: Article) -> AcquisitionResult:
        self._enter(result, AcquisitionState.DONE)
        result.article = article
        logger.info(f"Acquired '{article.title}' via {article.tier.value}")
        return result

    def _fail(self, result: AcquisitionResult, reason: str) -> AcquisitionResult:
        self._enter(result, AcquisitionState.FAILED)
        result.reason = reason
        logger.error(reason)
        return result
