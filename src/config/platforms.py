# src/config/platforms.py

"""Static storefront tables: extraction configs, trust, sellers, search URLs."""

import re
from dataclasses import dataclass
from urllib.parse import quote, urlparse


@dataclass(frozen=True)
class PlatformConfig:
    """How to extract a product page on one storefront."""

    domain: str
    name: str
    wait_ms: int
    price_terms: tuple[str, ...]
    is_indian: bool

    @property
    def accept_language(self) -> str:
        """Locale header sent with extraction requests."""
        return "en-IN,en;q=0.9" if self.is_indian else "en-US,en;q=0.9"

    @property
    def default_currency(self) -> str:
        """Currency assumed when the page does not state one."""
        return "INR" if self.is_indian else "USD"


# --- Extraction configs (matched against the URL hostname) ---------------

PLATFORM_CONFIGS: dict[str, PlatformConfig] = {
    cfg.domain: cfg
    for cfg in (
        PlatformConfig(
            "amazon.in", "Amazon India", 5000,
            ("Price", "MRP", "Deal Price", "Offer Price", "Sale Price"),
            True,
        ),
        PlatformConfig(
            "flipkart.com", "Flipkart", 6000,
            ("Price", "Special Price", "Deal Price"), True,
        ),
        PlatformConfig(
            "myntra.com", "Myntra", 5000,
            ("Price", "Discounted Price", "MRP"), True,
        ),
        PlatformConfig(
            "ajio.com", "Ajio", 5000, ("Price", "Offer Price"), True,
        ),
        PlatformConfig(
            "tatacliq.com", "Tata CLiQ", 5000,
            ("Price", "Special Price", "Offer Price"), True,
        ),
        PlatformConfig(
            "croma.com", "Croma", 5000,
            ("Price", "Special Price", "MRP"), True,
        ),
        PlatformConfig(
            "reliancedigital.in", "Reliance Digital", 5000,
            ("Price", "Offer Price", "Deal Price"), True,
        ),
        PlatformConfig(
            "vijaysales.com", "Vijay Sales", 5000,
            ("Price", "Special Price"), True,
        ),
        PlatformConfig(
            "snapdeal.com", "Snapdeal", 5000,
            ("Price", "Selling Price"), True,
        ),
        PlatformConfig(
            "amazon.com", "Amazon US", 3000, ("Price",), False,
        ),
        PlatformConfig("ebay.com", "eBay", 3000, ("Price",), False),
        PlatformConfig(
            "walmart.com", "Walmart", 3000, ("Price", "Sale Price"), False,
        ),
    )
}

GENERIC_PRICE_TERMS: tuple[str, ...] = (
    "Price", "MRP", "Sale Price", "Offer Price",
)

# --- Platform trust (0-10) ----------------------------------------------

PLATFORM_TRUST: dict[str, float] = {
    "amazon.in": 10.0,
    "amazon.com": 9.5,
    "flipkart.com": 9.0,
    "snapdeal.com": 7.0,
    "paytmmall.com": 6.0,
    "shopclues.com": 5.5,
    "tatacliq.com": 9.0,
    "myntra.com": 8.5,
    "ajio.com": 8.0,
    "meesho.com": 6.5,
    "bewakoof.com": 6.0,
    "zivame.com": 6.0,
    "nykaa.com": 8.5,
    "pharmeasy.com": 6.5,
    "1mg.com": 6.5,
    "bigbasket.com": 8.0,
    "blinkit.com": 7.5,
    "swiggy.com": 7.5,
    "zepto.com": 7.5,
    "jiomart.com": 7.0,
    "lenskart.com": 8.0,
    "firstcry.com": 8.0,
    "pepperfry.com": 7.0,
    "boat-lifestyle.com": 7.0,
    "ebay.com": 7.0,
    "walmart.com": 9.0,
    "target.com": 8.5,
    "bestbuy.com": 8.5,
}
DEFAULT_PLATFORM_TRUST: float = 5.0

# --- Seller heuristics --------------------------------------------------

SELLER_TRUST_PHRASES: tuple[str, ...] = (
    "official store",
    "authorized",
    "verified seller",
    "brand official",
)
FULFILMENT_PHRASES: tuple[str, ...] = ("fulfilled by", "fba")

# Keyed by a substring of the platform domain
TRUSTED_SELLERS: dict[str, tuple[str, ...]] = {
    "amazon": (
        "cloudtail",
        "appario",
        "amazon retail",
        "cocoblu retail",
        "prione retail",
        "amazon global store",
    ),
    "flipkart": (
        "flipkart retail",
        "ws retail",
        "omnitech retail",
        "retail net",
        "flipkart assured",
    ),
}

# --- Structured search allow-list ---------------------------------------

SEARCH_PLATFORMS: dict[str, str] = {
    "amazon.in": "Amazon India",
    "flipkart.com": "Flipkart",
    "myntra.com": "Myntra",
    "ajio.com": "Ajio",
    "tatacliq.com": "Tata CLiQ",
    "croma.com": "Croma",
    "reliancedigital.in": "Reliance Digital",
    "vijaysales.com": "Vijay Sales",
    "meesho.com": "Meesho",
    "jiomart.com": "JioMart",
    "nykaa.com": "Nykaa",
    "pepperfry.com": "Pepperfry",
    "firstcry.com": "FirstCry",
    "lenskart.com": "Lenskart",
    "boat-lifestyle.com": "boAt",
    "shopclues.com": "ShopClues",
}

# Individual product pages, per platform (path + query)
PRODUCT_PAGE_PATTERNS: dict[str, re.Pattern[str]] = {
    "amazon.in": re.compile(r"/(dp|gp/product)/[A-Z0-9]{10}", re.I),
    "flipkart.com": re.compile(r"/p/itm[0-9a-z]+", re.I),
    "myntra.com": re.compile(r"/\d{5,}(/buy)?/?$"),
    "ajio.com": re.compile(r"/p/[0-9a-z_]+", re.I),
    "tatacliq.com": re.compile(r"/p-mp\d+", re.I),
    "croma.com": re.compile(r"/p/\d+"),
    "reliancedigital.in": re.compile(r"(/p/\d+|-\d{6,}/?$)"),
    "vijaysales.com": re.compile(r"/(p/)?\d{4,}/"),
    "meesho.com": re.compile(r"/p/[0-9a-z]+", re.I),
    "jiomart.com": re.compile(r"/p/[a-z]+/.+/\d+", re.I),
    "nykaa.com": re.compile(r"/p/\d+"),
    "pepperfry.com": re.compile(r"-\d{4,}\.html$"),
    "firstcry.com": re.compile(r"/\d{5,}/product-detail", re.I),
    "lenskart.com": re.compile(r"\.html$"),
    "boat-lifestyle.com": re.compile(r"/products/[0-9a-z-]+", re.I),
    "shopclues.com": re.compile(r"\.html$"),
}

# Direct-URL validation (any platform)
PRODUCT_PATH_MARKERS: tuple[str, ...] = (
    "/dp/", "/p/", "/product/", "/buy/", "/pdt/",
)
LISTING_PATH_MARKERS: tuple[str, ...] = (
    "/search", "/s?", "/s/", "/category", "/browse",
)
BLOCKED_URL_FRAGMENTS: tuple[str, ...] = (
    "/search?", "/s?k=", "example.com",
)

# --- Planned search URLs ------------------------------------------------

SEARCH_URL_TEMPLATES: dict[str, str] = {
    "amazon.in": "https://www.amazon.in/s?k={query}",
    "flipkart.com": "https://www.flipkart.com/search?q={query}",
    "myntra.com": "https://www.myntra.com/{slug}",
    "tatacliq.com": (
        "https://www.tatacliq.com/search/?searchCategory=all&text={query}"
    ),
    "ajio.com": "https://www.ajio.com/search/?text={query}",
    "croma.com": "https://www.croma.com/searchB?q={query}",
    "reliancedigital.in": "https://www.reliancedigital.in/search?q={query}",
    "vijaysales.com": "https://www.vijaysales.com/search/{query}",
    "nykaa.com": "https://www.nykaa.com/search/result/?q={query}",
}

CATEGORY_PLATFORMS: dict[str, tuple[str, ...]] = {
    "electronics": (
        "amazon.in", "flipkart.com", "tatacliq.com",
        "croma.com", "reliancedigital.in", "vijaysales.com",
    ),
    "fashion": (
        "amazon.in", "flipkart.com", "myntra.com",
        "tatacliq.com", "ajio.com",
    ),
    "beauty": ("amazon.in", "flipkart.com", "myntra.com", "nykaa.com"),
    "home": ("amazon.in", "flipkart.com", "tatacliq.com"),
    "sports": ("amazon.in", "flipkart.com", "tatacliq.com"),
    "books": ("amazon.in", "flipkart.com"),
}
FALLBACK_PLATFORMS: tuple[str, ...] = ("amazon.in", "flipkart.com")


def normalize_domain(value: str | None) -> str:
    """Strip scheme, ``www.`` and path from a domain or URL."""
    if not value:
        return ""
    lowered = value.strip().lower()
    lowered = re.sub(r"^(https?://)?(www\.)?", "", lowered)
    return lowered.split("/")[0]


def hostname_of(url: str) -> str:
    """Return the URL's hostname without ``www.`` (empty if unparseable)."""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return ""
    return host.lower().removeprefix("www.")


def detect_platform(url: str) -> PlatformConfig | None:
    """Pick the extraction config for a URL's host, or a generic one.

    Known platforms match on the hostname itself or a subdomain of it,
    never on text elsewhere in the URL.  Returns ``None`` when the URL
    has no usable hostname.
    """
    host = hostname_of(url)
    if not host:
        return None
    for domain, config in PLATFORM_CONFIGS.items():
        if host == domain or host.endswith("." + domain):
            return config

    first_label = host.split(".")[0]
    return PlatformConfig(
        domain=host,
        name=first_label[:1].upper() + first_label[1:],
        wait_ms=3000,
        price_terms=GENERIC_PRICE_TERMS,
        is_indian=".in" in host,
    )


def match_search_platform(url: str) -> str | None:
    """Return the allow-listed domain a result URL belongs to."""
    host = hostname_of(url)
    if not host:
        return None
    for domain in SEARCH_PLATFORMS:
        if host == domain or host.endswith("." + domain):
            return domain
    return None


def build_search_url(platform: str, query: str) -> str | None:
    """Fill the platform's search-results template, if one exists."""
    template = SEARCH_URL_TEMPLATES.get(platform)
    if template is None:
        return None
    return template.format(
        query=quote(query, safe=""),
        slug=quote(query.strip().replace(" ", "-"), safe="-"),
    )
