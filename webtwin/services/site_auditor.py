"""
Site Auditor

Heuristic UI/UX + SEO audit of a single page's live HTML, optionally
upgraded with LLM recommendations, plus screenshot URLs per device.
"""
import math
import re
from typing import Dict, List, Optional
from urllib.parse import urlencode

import httpx
from bs4 import BeautifulSoup

from webtwin.config import get_settings
from webtwin.connectors.base import BaseConnector
from webtwin.services.llm_service import LLMService
from webtwin.utils.logger import log

settings = get_settings()

META_DESCRIPTION_MIN = 50
META_DESCRIPTION_MAX = 160
MIN_SCORE = 30
MAX_SCORE = 100

DEFAULT_SUMMARY = (
    "Baseline structure analyzed from live HTML. Prioritize missing metadata, "
    "responsive setup, and accessibility fixes for immediate gains."
)

# name -> (width, height, is_mobile)
SNAPSHOT_VIEWPORTS = {
    "mobile": (390, 844, True),
    "desktop": (1440, 900, False),
    "tablet": (820, 1180, False),
}

MOBILE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 16_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.0 Mobile/15E148 Safari/604.1"
)


def _meta_content(soup: BeautifulSoup, name: str) -> Optional[str]:
    tag = soup.find("meta", attrs={"name": re.compile(f"^{name}$", re.I)})
    if tag is None:
        return None
    return (tag.get("content") or "").strip()


def _clean_text(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def extract_checks(html: str) -> Dict:
    """Structural checks on raw HTML. Empty HTML fails every check."""
    soup = BeautifulSoup(html or "", "html.parser")

    title = soup.title.get_text(strip=True) if soup.title else ""
    meta_description = _meta_content(soup, "description") or ""
    images_without_alt = [img for img in soup.find_all("img") if not img.get("alt")]
    empty_links = [a for a in soup.find_all("a") if not a.get_text(strip=True)]

    return {
        "title": bool(title),
        "metaDescription": META_DESCRIPTION_MIN <= len(meta_description) <= META_DESCRIPTION_MAX,
        "viewport": _meta_content(soup, "viewport") is not None,
        "h1Count": len(soup.find_all("h1")),
        "imagesWithoutAlt": len(images_without_alt),
        "emptyLinks": len(empty_links),
    }


def _rec(rec_id: str, title: str, detail: str, impact: str, category: str) -> Dict:
    return {"id": rec_id, "title": title, "detail": detail, "impact": impact, "category": category}


def build_recommendations(checks: Dict) -> List[Dict]:
    """Rule-based recommendations: problems first, then what's already good."""
    recs = []

    if not checks["title"]:
        recs.append(_rec(
            "missing-title", "Missing page title",
            "Add a descriptive <title> tag to improve SEO and clarity in browser tabs.",
            "bad", "seo",
        ))

    if not checks["metaDescription"]:
        recs.append(_rec(
            "meta-description", "Meta description needs improvement",
            "Provide a 50-160 character description to improve search snippets and CTR.",
            "improve", "seo",
        ))

    if not checks["viewport"]:
        recs.append(_rec(
            "viewport-meta", "Missing viewport meta tag",
            "Add a responsive viewport meta tag to ensure proper mobile scaling.",
            "bad", "uiux",
        ))

    if checks["h1Count"] == 0:
        recs.append(_rec(
            "missing-h1", "Missing main H1",
            "Add a clear H1 headline to define the primary page topic.",
            "improve", "seo",
        ))
    elif checks["h1Count"] > 1:
        recs.append(_rec(
            "multiple-h1", "Multiple H1 tags",
            "Use a single H1 to keep page hierarchy consistent for SEO and accessibility.",
            "improve", "seo",
        ))

    if checks["imagesWithoutAlt"] > 0:
        recs.append(_rec(
            "missing-alt", "Image alt text missing",
            f"{checks['imagesWithoutAlt']} images are missing alt text. "
            "Add alt attributes for accessibility and SEO.",
            "improve", "seo",
        ))

    if checks["emptyLinks"] > 0:
        recs.append(_rec(
            "empty-links", "Links without descriptive text",
            f"{checks['emptyLinks']} links have no text. Add visible labels for accessibility.",
            "improve", "uiux",
        ))

    if checks["viewport"]:
        recs.append(_rec(
            "viewport-good", "Responsive viewport detected",
            "Viewport meta tag is set correctly for mobile scaling.",
            "good", "uiux",
        ))

    if checks["title"]:
        recs.append(_rec(
            "title-good", "Clear page title",
            "Page title is present and readable in browser tabs.",
            "good", "seo",
        ))

    if checks["h1Count"] == 1:
        recs.append(_rec(
            "single-h1", "Single main headline",
            "Exactly one H1 found, which helps structure the page for users.",
            "good", "seo",
        ))

    if not recs:
        recs.append(_rec(
            "clean-ui", "Solid baseline structure",
            "Core structural checks look good. Focus on content hierarchy and performance tuning.",
            "good", "uiux",
        ))

    return recs


def compute_score(checks: Dict) -> int:
    score = 100
    if not checks["title"]:
        score -= 12
    if not checks["metaDescription"]:
        score -= 10
    if not checks["viewport"]:
        score -= 18
    if checks["h1Count"] == 0:
        score -= 10
    if checks["h1Count"] > 1:
        score -= 6
    score -= min(checks["imagesWithoutAlt"] * 2, 12)
    score -= min(checks["emptyLinks"] * 2, 10)
    return max(MIN_SCORE, min(MAX_SCORE, score))


def summarize_content(html: str) -> Dict:
    """Compact content digest used as LLM context"""
    soup = BeautifulSoup(html or "", "html.parser")

    h1 = soup.find("h1")
    links = []
    for a in soup.find_all("a", href=True)[:10]:
        text = _clean_text(a.get_text(" "))
        links.append(f"{text or 'link'} -> {a['href']}")

    headings = [_clean_text(h.get_text(" ")) for h in soup.find_all("h2")[:6]]

    for tag in soup(["script", "style"]):
        tag.decompose()

    return {
        "title": soup.title.get_text(strip=True) if soup.title else "",
        "h1": _clean_text(h1.get_text(" ")) if h1 else "",
        "metaDescription": _meta_content(soup, "description") or "",
        "headings": [h for h in headings if h],
        "links": links,
        "textSample": _clean_text(soup.get_text(" "))[:1200],
    }


def build_snapshot_url(
    target_url: str,
    width: int,
    height: int,
    is_mobile: bool,
    access_key: Optional[str] = None,
    base_url: Optional[str] = None,
) -> Optional[str]:
    """Screenshot service URL for one viewport, None without an access key"""
    access_key = access_key if access_key is not None else settings.screenshotone_access_key
    base_url = base_url or settings.screenshotone_base_url
    if not access_key:
        return None

    params = {
        "url": target_url,
        "access_key": access_key,
        "viewport_width": str(width),
        "viewport_height": str(height),
        "device_scale_factor": "2" if is_mobile else "1",
        "format": "png",
        "image_quality": "80",
        "block_ads": "true",
        "block_trackers": "true",
        "cache": "false",
        "full_page": "true",
    }
    if is_mobile:
        params["is_mobile"] = "true"
        params["user_agent"] = MOBILE_USER_AGENT

    return f"{base_url}?{urlencode(params)}"


class SiteAuditor(BaseConnector):
    """Fetches a page and audits it"""

    def __init__(
        self,
        llm: Optional[LLMService] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__("SiteAuditor", timeout=settings.page_fetch_timeout_seconds, transport=transport)
        self.llm = llm if llm is not None else LLMService()

    async def fetch_html(self, url: str) -> Dict:
        """{"html", "fetched_url"}; a failed fetch gives empty HTML and no URL."""
        try:
            async with self.client() as client:
                response = await client.get(url)
            return {"html": response.text, "fetched_url": str(response.url)}
        except httpx.HTTPError as e:
            log.warning(f"Page fetch failed for {url}: {str(e)}")
            return {"html": "", "fetched_url": None}

    async def scan(self, target_url: str) -> Dict:
        page = await self.fetch_html(target_url)
        html = page["html"]

        checks = extract_checks(html)
        ai = self.llm.generate_page_recommendations(summarize_content(html), target_url)

        recommendations = ai["recommendations"] if ai and ai["recommendations"] else build_recommendations(checks)
        if ai and ai["score"] is not None and math.isfinite(ai["score"]):
            score = int(round(ai["score"]))
        else:
            score = compute_score(checks)

        log.info(f"Scanned {target_url}: score={score}, ai={bool(ai)}")

        return {
            "targetUrl": target_url,
            "fetchedUrl": page["fetched_url"],
            "score": score,
            "summary": (ai or {}).get("summary") or DEFAULT_SUMMARY,
            "aiUsed": bool(ai),
            "recommendations": recommendations,
            "snapshots": {
                name: build_snapshot_url(target_url, width, height, is_mobile)
                for name, (width, height, is_mobile) in SNAPSHOT_VIEWPORTS.items()
            },
            "checks": checks,
        }
