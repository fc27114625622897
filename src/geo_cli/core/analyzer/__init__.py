"""Deep-content analysis: analyzer and extractor capabilities plus draft generation."""

from geo_cli.core.analyzer.base import AnalysisRequest, ContentAnalyzer, ContentExtractor
from geo_cli.core.analyzer.extractor import ExtractionConfig, HtmlExtractor, TavilyExtractor
from geo_cli.core.analyzer.groq import GroqAnalyzer
from geo_cli.core.analyzer.retry import with_retries

__all__ = [
    "AnalysisRequest",
    "ContentAnalyzer",
    "ContentExtractor",
    "ExtractionConfig",
    "GroqAnalyzer",
    "HtmlExtractor",
    "TavilyExtractor",
    "with_retries",
]
