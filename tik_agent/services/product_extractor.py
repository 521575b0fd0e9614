"""
Product extraction from a shop page URL.

analyze_product() never raises: any fetch, parse or LLM problem degrades to
FALLBACK_PRODUCT so the generation flow can always continue. scrape_product()
is the strict variant used when real images are required (video rendering).
"""
import enum
import json
import logging
import re
from dataclasses import dataclass, field, replace
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from tik_agent.config import get_settings
from tik_agent.services.llm_service import invoke_llm

logger = logging.getLogger(__name__)

MAX_TITLE_CHARS = 200
MAX_DESCRIPTION_CHARS = 500
MAX_IMAGES = 6
LLM_HTML_CHARS = 8000

# Mobile Safari headers; TikTok blocks obvious bots
BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (iPhone; CPU iPhone OS 14_6 like Mac OS X) AppleWebKit/605.1.15",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Referer": "https://www.tiktok.com/",
}

PRICE_PATTERN = re.compile(r"\$\s?[\d,]+(?:\.\d{1,2})?")
CODE_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.I)

EXTRACT_SYSTEM_INSTRUCTION = (
    "Extract product info from HTML. Return JSON with: name, price, description. "
    "If missing, estimate reasonable values."
)

DEFAULT_NAME = "Product"
DEFAULT_PRICE = "N/A"
DEFAULT_DESCRIPTION = "Amazing TikTok Shop product"


class ExtractionError(Exception):
    """Page could not be fetched or did not look like a product page."""


class ExtractionSource(str, enum.Enum):
    HTML = "html"
    LLM_JSON = "llm_json"
    LLM_TEXT = "llm_text"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ExtractedProduct:
    name: str
    price: str
    description: str
    source: ExtractionSource
    images: list[str] = field(default_factory=list)

    @property
    def image(self) -> str | None:
        return self.images[0] if self.images else None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "price": self.price,
            "description": self.description,
            "images": list(self.images),
            "source": self.source.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExtractedProduct":
        return cls(
            name=data["name"],
            price=data["price"],
            description=data["description"],
            images=list(data.get("images") or []),
            source=ExtractionSource(data.get("source", ExtractionSource.HTML.value)),
        )


FALLBACK_PRODUCT = ExtractedProduct(
    name="Premium TikTok Shop Product",
    price="$29.99",
    description=(
        "High-quality product trending on TikTok. Perfect for content creators and influencers. "
        "Limited time offer with free shipping."
    ),
    source=ExtractionSource.FALLBACK,
)


@dataclass
class ScrapedPage:
    """Raw fields found in the markup; any of them may be missing."""
    title: str | None = None
    description: str | None = None
    price: str | None = None
    images: list[str] = field(default_factory=list)


def fetch_html(url: str, client: httpx.Client | None = None) -> str:
    """GET the page with browser-like headers. Raises httpx errors or ExtractionError."""
    settings = get_settings()
    own_client = client is None
    if own_client:
        client = httpx.Client(timeout=settings.scrape_timeout_seconds, follow_redirects=True)
    try:
        response = client.get(url, headers=BROWSER_HEADERS)
        response.raise_for_status()
    finally:
        if own_client:
            client.close()
    content_type = response.headers.get("content-type", "")
    if content_type and "html" not in content_type.lower():
        raise ExtractionError(f"Not an HTML page (content-type {content_type})")
    return response.text


def _meta(soup: BeautifulSoup, *, prop: str | None = None, name: str | None = None) -> str | None:
    tag = soup.find("meta", attrs={"property": prop}) if prop else soup.find("meta", attrs={"name": name})
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def parse_product_html(html: str, base_url: str) -> ScrapedPage:
    """Open Graph / meta tags first, plain markup as a fallback."""
    soup = BeautifulSoup(html, "html.parser")
    page = ScrapedPage()

    title = _meta(soup, prop="og:title")
    if not title and soup.title and soup.title.string:
        title = soup.title.string.strip()
    page.title = title[:MAX_TITLE_CHARS] if title else None

    description = _meta(soup, prop="og:description") or _meta(soup, name="description")
    page.description = description[:MAX_DESCRIPTION_CHARS] if description else None

    amount = _meta(soup, prop="product:price:amount") or _meta(soup, prop="og:price:amount")
    if amount:
        currency = _meta(soup, prop="product:price:currency") or _meta(soup, prop="og:price:currency")
        page.price = f"{amount} {currency}" if currency else amount
    else:
        match = PRICE_PATTERN.search(soup.get_text(" "))
        page.price = match.group(0).replace(" ", "") if match else None

    seen: list[str] = []
    candidates = [tag.get("content") for tag in soup.find_all("meta", attrs={"property": "og:image"})]
    candidates += [tag.get("src") for tag in soup.find_all("img")]
    for src in candidates:
        if not src:
            continue
        absolute = urljoin(base_url, src.strip())
        if not absolute.startswith(("http://", "https://")) or absolute in seen:
            continue
        seen.append(absolute)
        if len(seen) >= MAX_IMAGES:
            break
    page.images = seen
    return page


def parse_llm_product(text: str) -> ExtractedProduct:
    """JSON object -> LLM_JSON result; anything else keeps the raw text as description (LLM_TEXT)."""
    cleaned = CODE_FENCE_PATTERN.sub("", (text or "").strip())
    try:
        data = json.loads(cleaned)
    except (json.JSONDecodeError, TypeError):
        data = None
    if not isinstance(data, dict):
        return ExtractedProduct(
            name="TikTok Shop Product",
            price="$19.99",
            description=text or "Product from TikTok Shop",
            source=ExtractionSource.LLM_TEXT,
        )
    images = []
    for key in ("imageUrl", "image"):
        value = data.get(key)
        if isinstance(value, str) and value.startswith(("http://", "https://")):
            images.append(value)
    return ExtractedProduct(
        name=str(data.get("name") or DEFAULT_NAME)[:MAX_TITLE_CHARS],
        price=str(data.get("price") or DEFAULT_PRICE),
        description=str(data.get("description") or DEFAULT_DESCRIPTION),
        images=images,
        source=ExtractionSource.LLM_JSON,
    )


def extract_with_llm(html: str) -> ExtractedProduct:
    text = invoke_llm(
        EXTRACT_SYSTEM_INSTRUCTION,
        f"Extract from HTML (first {LLM_HTML_CHARS} chars):\n\n{html[:LLM_HTML_CHARS]}",
        temperature=0.2,
        json_output=True,
    )
    return parse_llm_product(text)


def _from_page(page: ScrapedPage) -> ExtractedProduct:
    return ExtractedProduct(
        name=page.title or DEFAULT_NAME,
        price=page.price or DEFAULT_PRICE,
        description=page.description or DEFAULT_DESCRIPTION,
        images=page.images,
        source=ExtractionSource.HTML,
    )


def _extract(url: str, html: str, mode: str) -> ExtractedProduct:
    page = parse_product_html(html, url)
    if mode == "html" or (mode == "auto" and page.title):
        return _from_page(page)
    product = extract_with_llm(html)
    # The LLM only sees the first few KB; keep the images found in the full markup
    images = product.images + [i for i in page.images if i not in product.images]
    return replace(product, images=images[:MAX_IMAGES])


def analyze_product(
    url: str,
    *,
    client: httpx.Client | None = None,
    mode: str | None = None,
    cache=None,
) -> ExtractedProduct:
    """Best-effort product metadata. Never raises; returns FALLBACK_PRODUCT on any failure."""
    mode = mode or get_settings().product_extraction_mode
    if cache is not None:
        cached = cache.get(url)
        if cached is not None:
            return cached
    try:
        html = fetch_html(url, client)
        product = _extract(url, html, mode)
    except Exception as e:
        logger.warning("Scraping failed for %s, using fallback data: %s", url, e)
        return FALLBACK_PRODUCT
    if cache is not None:
        cache.set(url, product)
    return product


def scrape_product(url: str, client: httpx.Client | None = None) -> ExtractedProduct:
    """Strict HTML scrape (no LLM, no fallback). Fetch errors propagate."""
    html = fetch_html(url, client)
    return _from_page(parse_product_html(html, url))
