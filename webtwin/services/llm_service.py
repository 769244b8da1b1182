"""
LLM Service for AI-Powered Page Recommendations
Turns a summary of a page's content into UI/UX + SEO recommendations
"""
import json
import re
from typing import Dict, List, Optional

from anthropic import Anthropic

from webtwin.config import get_settings
from webtwin.utils.logger import log

settings = get_settings()

IMPACTS = {"good", "bad", "improve"}
CATEGORIES = {"uiux", "seo"}
MAX_DETAIL_CHARS = 240


class LLMService:
    """
    Service for generating AI-powered page recommendations using Claude
    """

    def __init__(self, client: Optional[Anthropic] = None):
        if client is not None:
            self.client = client
            self.enabled = True
            return

        self.enabled = bool(settings.enable_llm_insights and settings.anthropic_api_key)
        self.client = None

        if self.enabled:
            try:
                self.client = Anthropic(api_key=settings.anthropic_api_key)
                log.info("LLM Service initialized with Claude")
            except Exception as e:
                log.error(f"Failed to initialize Anthropic client: {str(e)}")
                self.enabled = False
        else:
            log.info("LLM insights disabled (no API key or feature disabled)")

    def generate_page_recommendations(self, content: Dict, target_url: str) -> Optional[Dict]:
        """
        Ask the model for a score, summary and 6-10 recommendations.

        Returns {"summary", "score", "recommendations"} or None when the
        LLM is disabled, the call fails, or the reply isn't usable JSON.
        """
        if not self.enabled:
            return None

        prompt = f"""You are an expert UI/UX + SEO auditor. Analyze the provided page summary and return JSON ONLY.

Return JSON with shape:
{{
  "summary": string,
  "score": number (0-100),
  "recommendations": [
    {{"id": string, "title": string, "detail": string, "impact": "good"|"bad"|"improve", "category": "uiux"|"seo"}}
  ]
}}

Rules:
- Focus mostly on UI/UX (at least 60% of items UI/UX) and the rest SEO.
- 6 to 10 total recommendations.
- Each detail max {MAX_DETAIL_CHARS} chars.
- Be practical and specific.

PAGE URL: {target_url}
TITLE: {content.get('title', '')}
META DESCRIPTION: {content.get('metaDescription', '')}
H1: {content.get('h1', '')}
H2s: {' | '.join(content.get('headings', []))}
LINKS (sample): {' | '.join(content.get('links', []))}
TEXT SAMPLE: {content.get('textSample', '')}
"""

        try:
            response = self.client.messages.create(
                model=settings.llm_model,
                max_tokens=settings.llm_max_tokens,
                temperature=0.4,
                messages=[{"role": "user", "content": prompt}]
            )
            raw = response.content[0].text
        except Exception as e:
            log.error(f"Error generating page recommendations: {str(e)}")
            return None

        parsed = self._parse_recommendations(raw)
        if parsed:
            log.info(f"Generated {len(parsed['recommendations'])} AI recommendations for {target_url}")
        return parsed

    def _parse_recommendations(self, raw: str) -> Optional[Dict]:
        """Parse the JSON reply, tolerating ```json fences around it."""
        text = (raw or "").strip()
        fenced = re.search(r"```(?:json)?\s*([\s\S]*?)```", text)
        if fenced:
            text = fenced.group(1).strip()
        if not text:
            return None

        try:
            data = json.loads(text)
        except ValueError:
            log.warning("LLM recommendation reply was not valid JSON")
            return None
        if not isinstance(data, dict):
            return None

        recommendations: List[Dict] = []
        for i, item in enumerate(data.get("recommendations") or []):
            if not isinstance(item, dict) or not item.get("title"):
                continue
            impact = item.get("impact") if item.get("impact") in IMPACTS else "improve"
            category = item.get("category") if item.get("category") in CATEGORIES else "uiux"
            recommendations.append({
                "id": str(item.get("id") or f"ai-{i + 1}"),
                "title": str(item["title"]),
                "detail": str(item.get("detail") or "")[:MAX_DETAIL_CHARS],
                "impact": impact,
                "category": category,
            })

        score = data.get("score")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            score = None

        return {
            "summary": str(data.get("summary") or ""),
            "score": score,
            "recommendations": recommendations,
        }
