from recruitflow.context.aggregator import ContextAggregator
from recruitflow.context.models import ContextBundle, ContextSection, ContextSource

__all__ = ["ContextAggregator", "ContextBundle", "ContextSection", "ContextSource"]
