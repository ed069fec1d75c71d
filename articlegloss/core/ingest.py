"""
ArticleGloss Ingestion
Network collaborators: article extraction, HTML-to-text and PubMed records
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

MERCURY_ENDPOINT = "https://mercury-api.vercel.app/parser?url="
EFETCH_ENDPOINT = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/efetch.fcgi"
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; ArticleGloss/1.0)"

# Elements whose text starts a new paragraph in the plain-text rendering
BLOCK_TAGS = ['p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'li', 'div', 'section',
              'article', 'blockquote', 'figcaption', 'tr', 'table', 'ul', 'ol', 'pre']


class ExtractionError(RuntimeError):
    """The article extractor could not produce content for a URL"""


class RecordFetchError(RuntimeError):
    """A bibliographic record could not be fetched or parsed"""


def build_session(retries: int = 3, user_agent: str = DEFAULT_USER_AGENT) -> requests.Session:
    """
    Create a requests session with retries on throttling and server errors

    Args:
        retries: Total retries per request (0 disables retrying)
        user_agent: User-Agent header sent with every request

    Returns:
        Configured session
    """
    session = requests.Session()

    if retries > 0:
        retry_strategy = Retry(
            total=retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

    session.headers.update({
        'User-Agent': user_agent,
        'Accept-Language': 'en-US,en;q=0.5',
    })
    return session


def clean_text(text: str) -> str:
    """
    Normalize extracted text while keeping paragraph breaks

    Args:
        text: Raw text

    Returns:
        Cleaned text
    """
    # Fix common encoding issues
    text = text.replace('\u2019', "'")
    text = text.replace('\u2018', "'")
    text = text.replace('\u201c', '"')
    text = text.replace('\u201d', '"')
    text = text.replace('\u2013', '-')
    text = text.replace('\u2014', '--')
    text = text.replace('\u00a0', ' ')  # Non-breaking space

    # Remove control characters except newlines and tabs
    text = ''.join(char for char in text if ord(char) >= 32 or char in '\n\t')

    text = re.sub(r'[ \t]+', ' ', text)
    lines = [line.strip() for line in text.split('\n')]
    text = '\n'.join(lines)
    text = re.sub(r'\n{3,}', '\n\n', text)

    return text.strip()


def html_to_text(html: str) -> str:
    """
    Plain text of an HTML fragment

    Args:
        html: Article markup

    Returns:
        Text with one blank line between block elements
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, 'html.parser')

    for element in soup(["script", "style", "noscript"]):
        element.decompose()

    for br in soup.find_all('br'):
        br.replace_with('\n')

    for block in soup.find_all(BLOCK_TAGS):
        block.insert_before('\n\n')
        block.insert_after('\n\n')

    return clean_text(soup.get_text())


class MercuryExtractor:
    """Article extraction through a hosted Mercury parser endpoint"""

    def __init__(self,
                 session: Optional[requests.Session] = None,
                 endpoint: str = MERCURY_ENDPOINT,
                 timeout: int = 30):
        self.session = session or build_session()
        self.endpoint = endpoint
        self.timeout = timeout

    def extract(self, url: str) -> Dict[str, Any]:
        """
        Extract an article

        Args:
            url: Article page URL

        Returns:
            Dict with "title", "author" and "content" (HTML)
        """
        endpoint = self.endpoint + quote(url, safe='')
        try:
            response = self.session.get(endpoint, timeout=self.timeout)
        except requests.RequestException as e:
            raise ExtractionError(f"Mercury Parser request failed for {url}: {e}") from e

        if not response.ok:
            raise ExtractionError(f"Mercury Parser request failed for {url} "
                                  f"(HTTP {response.status_code})")

        try:
            data = response.json()
        except ValueError as e:
            raise ExtractionError(f"Mercury Parser returned invalid JSON for {url}") from e

        if not isinstance(data, dict):
            raise ExtractionError(f"Mercury Parser returned an unexpected payload for {url}")

        return {
            'title': data.get('title'),
            'author': data.get('author'),
            'content': data.get('content') or "",
        }


class DirectPageExtractor:
    """Fetches the article page itself and picks the main content with BeautifulSoup"""

    def __init__(self,
                 session: Optional[requests.Session] = None,
                 timeout: int = 30,
                 max_size_mb: int = 50):
        self.session = session or build_session()
        self.timeout = timeout
        self.max_size_mb = max_size_mb

    def extract(self, url: str) -> Dict[str, Any]:
        """
        Extract an article

        Args:
            url: Article page URL

        Returns:
            Dict with "title", "author" and "content" (HTML)
        """
        try:
            response = self.session.get(url, timeout=self.timeout, stream=True, headers={
                'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            })
            response.raise_for_status()
            content = self._read_limited(response)
        except requests.RequestException as e:
            raise ExtractionError(f"Could not fetch {url}: {e}") from e

        soup = BeautifulSoup(content, 'html.parser')

        title = self._meta(soup, 'citation_title') or self._meta(soup, 'og:title', attr='property')
        if not title and soup.title and soup.title.string:
            title = soup.title.string.strip()

        authors = [m.get('content', '').strip() for m in soup.find_all('meta', attrs={'name': 'citation_author'})]
        author = ", ".join(a for a in authors if a) or self._meta(soup, 'author')

        body = soup.find('article') or soup.find('main') or soup.body or soup
        return {
            'title': title,
            'author': author,
            'content': str(body),
        }

    def _read_limited(self, response) -> bytes:
        max_bytes = self.max_size_mb * 1024 * 1024

        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > max_bytes:
            raise ExtractionError(f"Content too large: {int(content_length) / (1024 * 1024):.1f}MB "
                                  f"> {self.max_size_mb}MB")

        content = b""
        for chunk in response.iter_content(chunk_size=8192):
            content += chunk
            if len(content) > max_bytes:
                raise ExtractionError(f"Content exceeded size limit: {self.max_size_mb}MB")
        return content

    @staticmethod
    def _meta(soup, name: str, attr: str = 'name') -> Optional[str]:
        tag = soup.find('meta', attrs={attr: name})
        if tag and tag.get('content'):
            return tag['content'].strip()
        return None


@dataclass
class BibliographicRecord:
    """Metadata parsed from a PubMed record"""

    pmid: str
    title: Optional[str] = None
    journal: Optional[str] = None
    authors: List[str] = field(default_factory=list)
    doi: Optional[str] = None
    pmcid: Optional[str] = None
    abstract: Optional[str] = None

    @property
    def byline(self) -> str:
        return f"{', '.join(self.authors)} \u2022 {self.journal or ''}"


def _text(element) -> Optional[str]:
    if element is None:
        return None
    text = element.get_text().strip()
    return text or None


def parse_pubmed_xml(xml: str, pmid: str) -> BibliographicRecord:
    """
    Parse an efetch PubMed XML document

    Args:
        xml: efetch response body
        pmid: Identifier the document was requested for

    Returns:
        BibliographicRecord with whatever fields the document carries
    """
    soup = BeautifulSoup(xml, 'xml')

    article = soup.find('PubmedArticle') or soup.find('PubmedBookArticle')
    if article is None:
        raise RecordFetchError(f"No PubMed article found in record {pmid}")

    record = BibliographicRecord(pmid=pmid)
    record.title = _text(article.find('ArticleTitle'))

    journal = article.find('Journal')
    if journal is not None:
        record.journal = _text(journal.find('Title'))

    for author in article.find_all('Author'):
        fore = _text(author.find('ForeName')) or ""
        last = _text(author.find('LastName')) or _text(author.find('CollectiveName')) or ""
        name = f"{fore} {last}".strip()
        if name:
            record.authors.append(name)

    # The record's own identifiers; cited references carry their own ArticleIdList
    pubmed_data = article.find('PubmedData')
    id_list = pubmed_data.find('ArticleIdList', recursive=False) if pubmed_data else None
    if id_list is not None:
        record.doi = _text(id_list.find('ArticleId', attrs={'IdType': 'doi'}, recursive=False))
        record.pmcid = _text(id_list.find('ArticleId', attrs={'IdType': 'pmc'}, recursive=False))

    if record.doi is None:
        record.doi = _text(article.find('ELocationID', attrs={'EIdType': 'doi'}))

    abstract = article.find('Abstract')
    if abstract is not None:
        sections = []
        for part in abstract.find_all('AbstractText'):
            text = _text(part)
            if not text:
                continue
            label = part.get('Label')
            sections.append(f"{label}: {text}" if label else text)
        record.abstract = "\n\n".join(sections) or None

    return record


class PubMedClient:
    """Fetches PubMed records through the E-utilities efetch endpoint"""

    def __init__(self,
                 session: Optional[requests.Session] = None,
                 endpoint: str = EFETCH_ENDPOINT,
                 timeout: int = 30):
        self.session = session or build_session()
        self.endpoint = endpoint
        self.timeout = timeout

    def fetch_record(self, pmid: str) -> BibliographicRecord:
        params = {'db': 'pubmed', 'id': pmid, 'retmode': 'xml'}
        try:
            response = self.session.get(self.endpoint, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise RecordFetchError(f"Could not fetch PubMed record {pmid}: {e}") from e

        record = parse_pubmed_xml(response.text, pmid)
        logger.info(f"Fetched PubMed record {pmid} (pmc={record.pmcid}, doi={record.doi})")
        return record
