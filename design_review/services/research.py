"""Perplexity research client.

Two calls are exposed: a plain research query used to corroborate single
annotations, and a competitive-analysis query whose free-text answer is mined
line by line for competitors, trends, benchmarks and recommendations.
"""

import re
from typing import Any, Optional
from urllib.parse import urlparse

import httpx
import structlog

from design_review.exceptions import ResearchServiceError
from design_review.models import (
    Benchmark,
    CompetitiveAnalysis,
    CompetitorInsight,
    ResearchRequest,
    ResearchResponse,
    Source,
    TrendInsight,
)

logger = structlog.get_logger(__name__)

MAX_QUERY_LENGTH = 300
MAX_SYSTEM_PROMPT_LENGTH = 200
MAX_RELATED_QUESTIONS = 5

RESEARCH_SYSTEM_PROMPT = (
    "You are a UX research expert. Provide accurate, current information with proper citations."
)
COMPETITIVE_SYSTEM_PROMPT = (
    "You are a UX competitive analysis expert. Provide detailed competitor insights, "
    "industry trends, and actionable recommendations with sources."
)
COMPETITIVE_QUERY_SUFFIX = " Include specific examples, metrics, and recent developments in UX design."

UX_REFERENCE_DOMAINS = ("nngroup.com", "smashingmagazine.com", "uxplanet.org")

COMPETITOR_LIMIT = 5
TREND_LIMIT = 3
BENCHMARK_LIMIT = 3
RECOMMENDATION_LIMIT = 5

_LEADING_WORDS = re.compile(r"\w+(?:\s+\w+)*")


# =============================================================================
# Response parsing
# =============================================================================

def _domain_of(url: str) -> str:
    return urlparse(url).netloc if url else ""


def parse_sources(payload: dict[str, Any], max_sources: int) -> list[Source]:
    """Build sources from ``search_results`` or, failing that, ``citations``."""
    raw = payload.get("search_results") or payload.get("citations") or []
    sources = []
    for index, item in enumerate(raw, start=1):
        if isinstance(item, str):
            item = {"url": item}
        elif not isinstance(item, dict):
            continue
        url = str(item.get("url") or "")
        sources.append(
            Source(
                title=str(item.get("title") or f"Source {index}"),
                url=url,
                snippet=str(item.get("snippet") or item.get("text") or ""),
                domain=str(item.get("domain") or _domain_of(url)),
                published_date=item.get("published_date") or item.get("date"),
            )
        )
    return sources[:max_sources]


def extract_competitors(content: str, sources: list[Source]) -> list[CompetitorInsight]:
    competitors = []
    for line in content.splitlines():
        lowered = line.lower()
        if "competitor" in lowered or "company" in lowered:
            match = _LEADING_WORDS.search(line)
            if match:
                competitors.append(
                    CompetitorInsight(
                        name=match.group(0),
                        market_position=line.strip(),
                        sources=sources[:2],
                    )
                )
    return competitors[:COMPETITOR_LIMIT]


def extract_trends(content: str, sources: list[Source]) -> list[TrendInsight]:
    trends = []
    for line in content.splitlines():
        lowered = line.lower()
        if "trend" in lowered or "emerging" in lowered:
            trends.append(
                TrendInsight(trend=line.strip(), description=line, sources=sources[:2])
            )
    return trends[:TREND_LIMIT]


def extract_benchmarks(content: str, sources: list[Source]) -> list[Benchmark]:
    benchmarks = []
    fallback_source = sources[0] if sources else Source(title="Perplexity Research")
    for line in content.splitlines():
        if "%" in line or "metric" in line or "benchmark" in line:
            benchmarks.append(Benchmark(metric=line.strip(), value=line, source=fallback_source))
    return benchmarks[:BENCHMARK_LIMIT]


def extract_recommendations(content: str) -> list[str]:
    recommendations = []
    for line in content.splitlines():
        lowered = line.lower()
        if "recommend" in lowered or "should" in lowered or "consider" in lowered:
            recommendations.append(line.strip())
    return recommendations[:RECOMMENDATION_LIMIT]


# =============================================================================
# Client
# =============================================================================

class PerplexityClient:
    """Synchronous Perplexity chat-completions client."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.perplexity.ai",
        model: str = "sonar",
        timeout: float = 60.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self._client = http_client or httpx.Client(timeout=timeout)

    def research_topic(self, request: ResearchRequest) -> ResearchResponse:
        """Run one research query.

        HTTP and decoding failures come back as ``success=False``.

        Raises:
            ResearchServiceError: If no API key is configured.
        """
        try:
            payload = self._complete(
                system_prompt=RESEARCH_SYSTEM_PROMPT,
                query=request.query,
                recency_filter=request.recency_filter,
                domain=request.domain,
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("research_request_failed", error=str(e))
            return ResearchResponse(success=False, error=str(e))

        content = _message_content(payload)
        sources = parse_sources(payload, request.max_sources)
        related = [str(q) for q in payload.get("related_questions") or []]

        logger.debug(
            "research_complete",
            content_length=len(content),
            sources=len(sources),
        )
        return ResearchResponse(
            success=True,
            content=content,
            sources=sources,
            related_questions=related[:MAX_RELATED_QUESTIONS],
        )

    def get_competitive_analysis(
        self,
        subject: str,
        category_hint: Optional[str] = None,
    ) -> CompetitiveAnalysis:
        """Industry context for a design category. Returns empty on any failure."""
        industry = f" in {category_hint} industry" if category_hint else ""
        query = (
            f"Latest UX design trends and competitor analysis for {subject}{industry}. "
            "Include best practices, common patterns, and emerging trends."
            + COMPETITIVE_QUERY_SUFFIX
        )

        try:
            payload = self._complete(
                system_prompt=COMPETITIVE_SYSTEM_PROMPT,
                query=query,
                recency_filter="month",
                domain="ux",
            )
        except (httpx.HTTPError, ValueError, ResearchServiceError) as e:
            logger.warning("competitive_analysis_failed", error=str(e))
            return CompetitiveAnalysis()

        content = _message_content(payload)
        sources = parse_sources(payload, max_sources=5)
        analysis = CompetitiveAnalysis(
            competitors=extract_competitors(content, sources),
            industry_trends=extract_trends(content, sources),
            benchmarks=extract_benchmarks(content, sources),
            recommendations=extract_recommendations(content),
        )
        logger.info(
            "competitive_analysis_complete",
            competitors=len(analysis.competitors),
            trends=len(analysis.industry_trends),
            benchmarks=len(analysis.benchmarks),
        )
        return analysis

    def _complete(
        self,
        system_prompt: str,
        query: str,
        recency_filter: str,
        domain: Optional[str],
    ) -> dict[str, Any]:
        if not self.api_key:
            raise ResearchServiceError("Perplexity API key not configured")

        body: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt[:MAX_SYSTEM_PROMPT_LENGTH]},
                {"role": "user", "content": query[:MAX_QUERY_LENGTH]},
            ],
            "temperature": 0.2,
            "top_p": 0.9,
            "max_tokens": 800,
            "return_images": False,
            "return_related_questions": False,
            "search_recency_filter": recency_filter,
        }
        if domain:
            body["search_domain_filter"] = [f"{domain}.com", *UX_REFERENCE_DOMAINS][:2]

        response = self._client.post(
            f"{self.base_url}/chat/completions",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Accept": "application/json",
            },
            json=body,
        )
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        self._client.close()


def _message_content(payload: dict[str, Any]) -> str:
    choices = payload.get("choices") or []
    if not choices:
        return ""
    return str((choices[0].get("message") or {}).get("content") or "")
