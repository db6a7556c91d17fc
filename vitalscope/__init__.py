"""Client-side performance instrumentation pipeline.

Collectors turn platform performance entries and vital reports into a
session-anchored snapshot; the suggestion engine scores that snapshot.

Modules:
- platform/: raw entries, node scoping, the feed hub
- collectors/: web vitals, timeline, network, layout shift
- session.py: recording state machine + provider context
- aggregator.py / pipeline.py: wiring
- suggestions.py: rule engine
- cdp/: live-page host over the Chrome DevTools Protocol
"""

from __future__ import annotations

from .config import InstrumentationConfig
from .errors import CdpError, CliError, ProviderContextError, UnsupportedEntryTypeError, VitalscopeError
from .pipeline import InstrumentationPipeline
from .platform.feed import PlatformFeed
from .session import InstrumentationSession, SessionState, provide, use_instrumentation
from .suggestions import analyze

__version__ = "0.1.0"

__all__ = [
    "CdpError",
    "CliError",
    "InstrumentationConfig",
    "InstrumentationPipeline",
    "InstrumentationSession",
    "PlatformFeed",
    "ProviderContextError",
    "SessionState",
    "UnsupportedEntryTypeError",
    "VitalscopeError",
    "__version__",
    "analyze",
    "provide",
    "use_instrumentation",
]
