"""
Web research tools: search, page fetch and citation formatting.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from ..policy.guard import Requirement, guard
from ..policy.models import Failure
from .models import Tool, ToolContext


class SearchInput(BaseModel):
    query: str = Field(description="Search query")
    max_results: int = Field(
        default=5,
        ge=1,
        le=20,
        alias="maxResults",
        description="Maximum number of results to return (default: 5)",
    )

    model_config = ConfigDict(populate_by_name=True)


class ScrapeInput(BaseModel):
    url: HttpUrl = Field(description="URL to scrape")
    max_chars: int = Field(
        default=20000, ge=1, alias="maxChars", description="Truncate page text"
    )

    model_config = ConfigDict(populate_by_name=True)


class CitationInput(BaseModel):
    url: HttpUrl = Field(description="URL to extract citation from")
    title: Optional[str] = None
    author: Optional[str] = None


async def search(ctx: ToolContext, args: SearchInput) -> Any:
    settings = ctx.config.search

    async def _call() -> Any:
        async with ctx.http_client() as client:
            r = await client.post(
                settings.tavily_url,
                json={
                    "api_key": settings.tavily_api_key,
                    "query": args.query,
                    "max_results": args.max_results,
                },
            )
        if not r.is_success:
            return Failure(status=r.status_code, reason=r.text)
        data = r.json() or {}
        results: List[Dict[str, Any]] = [
            {
                "title": item.get("title"),
                "url": item.get("url"),
                "content": item.get("content"),
                "score": item.get("score"),
            }
            for item in (data.get("results") or [])[: args.max_results]
        ]
        return {"ok": True, "query": args.query, "results": results}

    return await guard(
        [Requirement("TAVILY_API_KEY", settings.tavily_api_key)], _call
    )


async def scrape(ctx: ToolContext, args: ScrapeInput) -> Any:
    url = str(args.url)
    async with ctx.http_client(follow_redirects=True) as client:
        r = await client.get(url)
    if not r.is_success:
        return Failure(status=r.status_code, reason=f"Fetch failed for {url}")
    text = r.text
    return {
        "ok": True,
        "url": url,
        "contentType": r.headers.get("content-type", ""),
        "content": text[: args.max_chars],
        "truncated": len(text) > args.max_chars,
    }


async def extract_citation(ctx: ToolContext, args: CitationInput) -> Any:
    url = str(args.url)
    host = urlparse(url).hostname or ""
    source = host[4:] if host.startswith("www.") else host
    now = datetime.now(tz=timezone.utc)
    title = args.title or source
    author = args.author or "Unknown"
    return {
        "ok": True,
        "url": url,
        "source": source,
        "title": title,
        "author": author,
        "accessDate": now.isoformat(),
        "citationMLA": f'"{title}." {source}. Accessed {now.strftime("%d %b %Y")}. Web. <{url}>.',
    }


web_search = Tool(
    name="webSearch",
    id="web.search",
    description=(
        "Search the web for current information, research, and authoritative "
        "sources. Returns results with citations and relevance scores."
    ),
    input_model=SearchInput,
    handler=search,
    category="search",
)

web_scrape = Tool(
    name="webScrape",
    id="web.scrape",
    description="Fetch the raw content of a specific URL. Best for known sources.",
    input_model=ScrapeInput,
    handler=scrape,
    category="search",
)

extract_citation_tool = Tool(
    name="extractCitation",
    id="web.extractCitation",
    description="Build citation information from a URL (title, author, date, source)",
    input_model=CitationInput,
    handler=extract_citation,
    category="search",
)
