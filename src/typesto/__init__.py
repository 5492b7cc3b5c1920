"""Typesto - typing speed test engine."""

from .__version__ import __version__
from .app import TypestoApp
from .config import TypestoSettings, load_settings
from .controller import SessionController
from .errors import (
    InvalidArgumentError,
    RemoteError,
    ResourceExhaustedError,
    TypestoError,
    UnavailableError,
)
from .generator import WordGenerationService
from .keystrokes import KeyEvent, KeyOutcome, KeystrokeInterpreter
from .leaderboard import (
    LeaderboardEntry,
    LeaderboardService,
    MemoryLeaderboardStore,
    RedisLeaderboardStore,
    ScoreSubmission,
)
from .metrics import FinalMetrics
from .profile import StaticProfile
from .session import Difficulty, Session, SessionSnapshot, SessionStats, SessionStatus
from .throttle import MinIntervalThrottle
from .words import WordSupply

__all__ = [
    "TypestoApp",
    "TypestoSettings",
    "load_settings",
    "SessionController",
    "TypestoError",
    "RemoteError",
    "InvalidArgumentError",
    "ResourceExhaustedError",
    "UnavailableError",
    "WordGenerationService",
    "KeyEvent",
    "KeyOutcome",
    "KeystrokeInterpreter",
    "LeaderboardEntry",
    "LeaderboardService",
    "MemoryLeaderboardStore",
    "RedisLeaderboardStore",
    "ScoreSubmission",
    "FinalMetrics",
    "StaticProfile",
    "Difficulty",
    "Session",
    "SessionSnapshot",
    "SessionStats",
    "SessionStatus",
    "MinIntervalThrottle",
    "WordSupply",
    "__version__",
]
