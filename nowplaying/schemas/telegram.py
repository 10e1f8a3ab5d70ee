"""
Pydantic models for the subset of Telegram Bot API updates the bot handles.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TelegramUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    is_bot: bool = False
    first_name: str = ""
    username: Optional[str] = None


class TelegramChat(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    type: str = "private"

    @property
    def is_private(self) -> bool:
        return self.type == "private"


class TelegramMessage(BaseModel):
    """Subset of Telegram message fields used by the bot commands."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message_id: int
    date: int = 0
    text: Optional[str] = None
    chat: TelegramChat
    from_: Optional[TelegramUser] = Field(None, alias="from")


class InlineQuery(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    from_: TelegramUser = Field(..., alias="from")
    query: str = ""


class CallbackQuery(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    from_: TelegramUser = Field(..., alias="from")
    data: Optional[str] = None
    inline_message_id: Optional[str] = None
    message: Optional[TelegramMessage] = None


class TelegramUpdate(BaseModel):
    """Minimal Telegram update payload we care about."""

    model_config = ConfigDict(extra="ignore")

    update_id: int
    message: Optional[TelegramMessage] = None
    inline_query: Optional[InlineQuery] = None
    callback_query: Optional[CallbackQuery] = None


ALLOWED_UPDATES: tuple[str, ...] = (
    "message",
    "callback_query",
    "inline_query",
)


__all__ = [
    "ALLOWED_UPDATES",
    "CallbackQuery",
    "InlineQuery",
    "TelegramChat",
    "TelegramMessage",
    "TelegramUpdate",
    "TelegramUser",
]
