"""Reference website analysis for the prompt optimizer.

The analysis is heuristic: it validates the URL and returns the house
dark-mode traits. Fetching and scraping the page is not done here.
"""

import logging
from typing import Optional
from urllib.parse import urlparse

from contracts import ReferenceAnalysis

logger = logging.getLogger(__name__)


def validate_url(url: Optional[str]) -> bool:
    """True for absolute http(s) URLs with a host."""
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def extract_design_patterns(analysis: ReferenceAnalysis) -> str:
    """Render an analysis as prompt text."""
    return (
        "Design analysis of the reference URL:\n"
        f"- Design style: {analysis.design_style}\n"
        f"- Layout structure: {analysis.layout_structure}\n"
        f"- Colors: {', '.join(analysis.colors)}\n"
        f"- Typography: {', '.join(analysis.typography)}\n"
        f"- Components: {', '.join(analysis.components)}\n"
        f"- Patterns: {', '.join(analysis.patterns)}\n"
    )


class ReferenceUrlAnalyzer:
    """Produces a ReferenceAnalysis for a reference URL."""

    async def analyze(self, url: str) -> Optional[ReferenceAnalysis]:
        if not validate_url(url):
            logger.warning("Ignoring invalid reference URL: %r", url)
            return None

        host = urlparse(url).hostname
        logger.info("Analyzing reference site %s", host)
        return ReferenceAnalysis(
            colors=["#020408", "#0B0F17", "#0EA5E9"],
            design_style="Modern Dark Mode",
            layout_structure="Single Page Application",
            typography=["Inter", "System Font"],
            components=["Navigation", "Hero Section", "Feature Cards"],
            patterns=["Glassmorphism", "Card-based Layout"],
        )
