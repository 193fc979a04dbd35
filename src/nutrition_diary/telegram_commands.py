"""Telegram bot command configuration."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class TelegramCommand:
    """Declarative bot command definition."""

    command: str
    description: str


class BotCommand(Enum):
    """Enum of bot commands (single source of truth)."""

    START = TelegramCommand("start", "Start the food diary")
    DAY = TelegramCommand("day", "Day summary: /day, /day yesterday, /day 01.02.2025")
    WEEK = TelegramCommand("week", "Last 7 days compared with the week before")
    MONTH = TelegramCommand("month", "This month compared with the previous one")
    GOALS = TelegramCommand("goals", "Daily goals and progress")
    GOAL = TelegramCommand("goal", "Set, remove or reset a goal")
    PLAN = TelegramCommand("plan", "Request a personal plan from a coach")
    CANCEL = TelegramCommand("cancel", "Leave the current step")
    HELP = TelegramCommand("help", "Quick guide")


def telegram_commands() -> list[dict[str, str]]:
    """Return commands formatted for Telegram API."""
    return [
        {"command": entry.value.command, "description": entry.value.description}
        for entry in BotCommand
    ]


CHAT_MENU_BUTTON: dict[str, object] = {"type": "commands"}
