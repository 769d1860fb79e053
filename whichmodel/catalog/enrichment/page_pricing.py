"""Scrape per-unit pricing from public Replicate model pages.

Pages embed JSON ``<script>`` blocks. A ``billingConfig`` object found in any
of them is authoritative: when it yields no recognized price rows the page is
treated as unpriced and the looser top-level ``price`` string is not used.
"""

import json
import re
from typing import Any, Dict, List, Optional, Tuple

import httpx
from pydantic import BaseModel

from ...domain import PricingSource
from ...logging import get_logger

logger = get_logger(__name__)

PAGE_BASE_URL = "https://replicate.com"
ALLOWED_HOST = "replicate.com"
DEFAULT_PAGE_TIMEOUT_SECONDS = 3.0
DEFAULT_MAX_BODY_BYTES = 2_000_000

JSON_SCRIPT_PATTERN = re.compile(
    r"""<script\b[^>]*\btype=["']application/json["'][^>]*>(.*?)</script>""",
    re.IGNORECASE | re.DOTALL,
)
SAFE_SEGMENT = re.compile(r"^[a-z0-9._-]+$", re.IGNORECASE)
CURRENCY_AMOUNT = re.compile(r"\$?\s*([0-9]+(?:\.[0-9]+)?)")

# (category, key, value)
PriceRow = Tuple[str, str, float]


class PagePricing(BaseModel):
    """Normalized pricing extracted from one model page."""

    pricing: Dict[str, float]
    source: PricingSource


def _round(value: float) -> float:
    return round(value, 6)


def build_model_url(model_key: str) -> Optional[str]:
    """``https://replicate.com/<owner>/<name>`` for a safe key, else None."""
    parts = model_key.split("/")
    if len(parts) != 2:
        return None

    owner, name = parts
    if not owner or not name:
        return None
    if not SAFE_SEGMENT.match(owner) or not SAFE_SEGMENT.match(name):
        return None

    url = httpx.URL(f"{PAGE_BASE_URL}/{owner}/{name}")
    if url.scheme != "https" or url.host != ALLOWED_HOST:
        return None
    return str(url)


def parse_currency_amount(raw: str) -> Optional[float]:
    match = CURRENCY_AMOUNT.search(raw)
    if not match:
        return None
    amount = float(match.group(1))
    return amount if amount > 0 else None


def map_price_text(text: str, amount: float, metric: str) -> Optional[PriceRow]:
    """Map a price description to a (category, key, per-unit value) row.

    Unrecognized or ambiguous unit text yields None rather than a guess.
    """
    text = text.lower()
    per_million = "per million" in text
    per_thousand = "per thousand" in text

    is_input_token = "token_input" in metric or re.search(r"\binput token", text) is not None
    is_output_token = "token_output" in metric or re.search(r"\boutput token", text) is not None
    if is_input_token or is_output_token:
        if not per_million and not per_thousand:
            return None
        value = amount * 1000 if per_thousand else amount
        return "text", "input_per_1m" if is_input_token else "output_per_1m", _round(value)

    if "megapixel" in metric or re.search(r"\bmegapixels?\b", text):
        is_input = "input" in metric or re.search(r"\binput\b", text) is not None
        value = amount / 1000 if per_thousand else amount
        key = "input_per_megapixel" if is_input else "output_per_megapixel"
        return "image", key, _round(value)

    if "image_output" in metric or re.search(r"\boutput image", text):
        value = amount / 1000 if per_thousand else amount
        return "image", "per_image", _round(value)

    if "character" in metric or re.search(r"\bcharacters?\b", text):
        value = amount / 1000 if per_thousand else amount
        return "audio", "per_character", _round(value)

    if re.search(r"\bper second\b", text) or re.search(r"\bsecond of output video\b", text):
        return "time", "per_second", _round(amount)

    if re.search(r"\bper minute\b", text):
        return "audio", "per_minute", _round(amount)

    return None


def _price_row(entry: Any) -> Optional[PriceRow]:
    if not isinstance(entry, dict):
        return None

    raw_price = entry.get("price") if isinstance(entry.get("price"), str) else ""
    amount = parse_currency_amount(raw_price)
    if amount is None:
        return None

    def text(field: str) -> str:
        value = entry.get(field)
        return value if isinstance(value, str) else ""

    hint = " ".join([text("title"), text("metric_display"), text("description")])
    return map_price_text(hint, amount, text("metric").lower())


def extract_json_scripts(html: str) -> List[Any]:
    scripts: List[Any] = []
    for match in JSON_SCRIPT_PATTERN.finditer(html):
        payload = match.group(1)
        if not payload:
            continue
        try:
            scripts.append(json.loads(payload))
        except ValueError:
            # Malformed blocks are common on real pages.
            continue
    return scripts


def find_billing_config(value: Any) -> Optional[Dict[str, Any]]:
    """Depth-first search for the first ``billingConfig`` object."""
    if isinstance(value, dict):
        direct = value.get("billingConfig")
        if isinstance(direct, dict):
            return direct
        nested_values = list(value.values())
    elif isinstance(value, list):
        nested_values = value
    else:
        return None

    for nested in nested_values:
        if isinstance(nested, (dict, list)):
            found = find_billing_config(nested)
            if found is not None:
                return found
    return None


def normalize_billing_config(billing_config: Dict[str, Any]) -> Optional[Dict[str, float]]:
    tiers = billing_config.get("current_tiers")
    if not isinstance(tiers, list):
        return None

    normalized: Dict[str, float] = {}
    category: Optional[str] = None

    for tier in tiers:
        if not isinstance(tier, dict) or not isinstance(tier.get("prices"), list):
            continue
        for entry in tier["prices"]:
            row = _price_row(entry)
            if row is None:
                continue
            row_category, key, value = row
            # A page mixing units cannot be mapped to one pricing variant.
            if category is not None and category != row_category:
                return None
            category = row_category
            normalized.setdefault(key, value)

    return normalized or None


def normalize_price_string(value: Any) -> Optional[Dict[str, float]]:
    if not isinstance(value, dict) or not isinstance(value.get("price"), str):
        return None

    amount = parse_currency_amount(value["price"])
    if amount is None:
        return None

    row = map_price_text(value["price"], amount, "")
    if row is None:
        return None
    _, key, price = row
    return {key: price}


def parse_page_pricing(html: str) -> Optional[PagePricing]:
    """Extract pricing from page HTML, or None when nothing trustworthy is found."""
    scripts = extract_json_scripts(html)

    saw_billing_config = False
    for script in scripts:
        billing_config = find_billing_config(script)
        if billing_config is None:
            continue
        saw_billing_config = True
        pricing = normalize_billing_config(billing_config)
        if pricing:
            return PagePricing(pricing=pricing, source=PricingSource.BILLING_CONFIG)

    if saw_billing_config:
        return None

    for script in scripts:
        pricing = normalize_price_string(script)
        if pricing:
            return PagePricing(pricing=pricing, source=PricingSource.PRICE_STRING)

    return None


def _read_limited(response: httpx.Response, max_body_bytes: int) -> Optional[str]:
    content_length = response.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > max_body_bytes:
        return None

    chunks: List[bytes] = []
    total = 0
    for chunk in response.iter_bytes():
        total += len(chunk)
        if total > max_body_bytes:
            return None
        chunks.append(chunk)

    return b"".join(chunks).decode(response.encoding or "utf-8", errors="replace")


def fetch_page_pricing(
    model_key: str,
    client: httpx.Client,
    timeout: float = DEFAULT_PAGE_TIMEOUT_SECONDS,
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
) -> Optional[PagePricing]:
    """Fetch and parse one model page. Every failure yields None."""
    url = build_model_url(model_key)
    if url is None:
        return None

    try:
        with client.stream(
            "GET",
            url,
            headers={"Accept": "text/html,application/xhtml+xml"},
            timeout=timeout,
        ) as response:
            if not response.is_success:
                logger.debug("Model page unavailable", model=model_key, status=response.status_code)
                return None
            html = _read_limited(response, max_body_bytes)

        if not html:
            logger.debug("Model page empty or too large", model=model_key)
            return None

        return parse_page_pricing(html)
    except httpx.HTTPError as e:
        logger.debug("Model page fetch failed", model=model_key, error=str(e))
        return None
    except Exception as e:
        # Hostile or broken page markup only leaves this model unpriced
        logger.debug("Model page parse failed", model=model_key, error=repr(e))
        return None
