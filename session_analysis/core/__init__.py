# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Pure domain logic with no external dependencies.

This module contains:
- Domain models (ActionRecord, SessionSummary, FullSessionRecord, ...)
- Session aggregation, dimension join and predicate filtering
- Histogram accumulation and time-stratified sampling

All code here is framework-agnostic and easily unit-testable.
"""

from session_analysis.core.dimension_joiner import DimensionJoiner, build_user_index
from session_analysis.core.errors import (
    JobCancelledError,
    MalformedFieldError,
    SessionAnalysisError,
)
from session_analysis.core.models import (
    ActionRecord,
    AnalysisResult,
    FilterCriteria,
    FullSessionRecord,
    SampledSession,
    SessionSummary,
    UserDimension,
)
from session_analysis.core.predicate_filter import PredicateFilter
from session_analysis.core.sampler import TOTAL_QUOTA, SamplingPlan, StratifiedSampler
from session_analysis.core.session_aggregator import SessionAggregator
from session_analysis.core.stats import AggregateStat, StatsAccumulator
from session_analysis.core.task import TaskParams

__all__ = [
    "ActionRecord",
    "AggregateStat",
    "AnalysisResult",
    "DimensionJoiner",
    "FilterCriteria",
    "FullSessionRecord",
    "JobCancelledError",
    "MalformedFieldError",
    "PredicateFilter",
    "SampledSession",
    "SamplingPlan",
    "SessionAggregator",
    "SessionAnalysisError",
    "SessionSummary",
    "StatsAccumulator",
    "StratifiedSampler",
    "TOTAL_QUOTA",
    "TaskParams",
    "UserDimension",
    "build_user_index",
]
