"""Domain flows: multi-step operations that span sources and services."""

from insight_core.domain.flows.gather_mentions import (
    GatherMentionsResult,
    gather_global_mentions,
)
from insight_core.domain.flows.reddit_analysis import (
    RedditAnalysisError,
    RedditUserAnalysis,
    analyze_external_reddit_user,
)
from insight_core.domain.flows.sentiment import (
    GeminiSentimentAnalyzer,
    SentimentResult,
    analyze_sentiment,
)

__all__ = [
    "GatherMentionsResult",
    "gather_global_mentions",
    "RedditAnalysisError",
    "RedditUserAnalysis",
    "analyze_external_reddit_user",
    "GeminiSentimentAnalyzer",
    "SentimentResult",
    "analyze_sentiment",
]
