"""Engine components orchestrating probe → index → fan-out → store."""

from .aggregator import ErrorAggregator
from .change_detector import ChangeDetector, ChangeState, ProbeResult
from .descriptor import DescriptorResolver, SourceTarget
from .fetcher import FetchRequest, FetchResponse, Fetcher
from .parser import IndexEntry, ParsedIndex, parse_index
from .refresher import RefreshResult, Refresher
from .thread_pool import TaskOutcome, ThreadPoolManager, run_bounded

__all__ = [
    "ChangeDetector",
    "ChangeState",
    "DescriptorResolver",
    "ErrorAggregator",
    "FetchRequest",
    "FetchResponse",
    "Fetcher",
    "IndexEntry",
    "ParsedIndex",
    "ProbeResult",
    "RefreshResult",
    "Refresher",
    "SourceTarget",
    "TaskOutcome",
    "ThreadPoolManager",
    "parse_index",
    "run_bounded",
]
