"""Command handlers for Telegram updates."""

from dataclasses import dataclass

from nutrition_diary.adapters.telegram_client import TelegramClient
from nutrition_diary.services.users import UserService

HELP_TEXT = "\n".join(
    [
        "Send what you ate as text, a photo or a voice note, "
        "for example: 'oatmeal 60g with milk 200 ml'.",
        "",
        "/day [today|yesterday|DD.MM.YYYY] - day summary",
        "/week - last 7 days compared with the week before",
        "/month - this month compared with the previous one",
        "/goals - daily goals and progress",
        "/goal set <nutrient> <value>, /goal remove <nutrient>, /goal reset",
        "/plan - request a personal plan from a coach",
        "/cancel - leave the current step",
    ]
)

START_KEYBOARD = {
    "keyboard": [
        [{"text": "/day"}, {"text": "/week"}, {"text": "/month"}],
        [{"text": "/goals"}, {"text": "/plan"}],
    ],
    "resize_keyboard": True,
}


@dataclass
class StartCommandHandler:
    """Handle the /start Telegram command."""

    user_service: UserService
    telegram_client: TelegramClient

    async def handle(self, telegram_user_id: int, chat_id: int) -> None:
        """Create the user if needed and send a welcome message."""
        self.user_service.ensure_user(telegram_user_id)
        await self.telegram_client.send_message(
            chat_id=chat_id,
            text=f"Welcome to your food diary!\n\n{HELP_TEXT}",
            reply_markup=START_KEYBOARD,
        )
