"""Statistics and text digests over interval samples."""

from meterpulse.metrics.digest import build_digest, build_prompt_messages
from meterpulse.metrics.statistics import StatisticsEngine

__all__ = ["StatisticsEngine", "build_digest", "build_prompt_messages"]
