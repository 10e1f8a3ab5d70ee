"""Service layer exports."""

from .bot_gateway import NowPlayingBot
from .credential_store import CredentialStore
from .link_resolver import LinkResolver
from .message_formatter import MessageFormatter
from .scheduler import PeriodicTask
from .telegram_polling import TelegramPoller
from .token_cipher import TokenCipherService
from .token_refresh import RefreshReport, TokenRefresher
from .track_cache import TrackCache
from .track_provider import TrackProvider

__all__ = [
    "CredentialStore",
    "LinkResolver",
    "MessageFormatter",
    "NowPlayingBot",
    "PeriodicTask",
    "RefreshReport",
    "TelegramPoller",
    "TokenCipherService",
    "TokenRefresher",
    "TrackCache",
    "TrackProvider",
]
