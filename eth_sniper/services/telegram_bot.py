# services/telegram_bot.py
from __future__ import annotations
import os

from telegram import BotCommand, InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import Application, CallbackQueryHandler, ContextTypes, MessageHandler, filters

from eth_sniper.controllers.conversation_controller import ConversationController
from eth_sniper.models.command import COMMANDS
from eth_sniper.models.reply import Reply
from eth_sniper.utils.log_config import logger_manager

logger = logger_manager.setup_logger(__name__)

SESSION_SWEEP_SEC = 30


def confirmation_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        InlineKeyboardButton("No", callback_data="confirm:no"),
        InlineKeyboardButton("Yes", callback_data="confirm:yes"),
    ]])


class TelegramBot:
    """
    Inbound side of the chat: every text message and confirmation button goes
    to the ``ConversationController``; its ``Reply`` is sent back to the chat.
    """

    def __init__(
        self,
        conversations: ConversationController,
        token: str | None = None,
        chat_id: int | None = None,
    ) -> None:
        self.token = token or os.getenv("TELEGRAM_TOKEN")
        if not self.token:
            raise RuntimeError("TELEGRAM_TOKEN is missing")
        self.conversations = conversations
        # set: only the operator chat is answered; None: every chat is
        self.chat_id = chat_id
        if chat_id is None:
            logger.warning("TelegramBot without TELEGRAM_CHAT_ID; any chat can use the operator wallet commands.")
        chat_filter = filters.Chat(chat_id=chat_id) if chat_id is not None else filters.ALL

        self.application = (
            Application.builder()
            .token(self.token)
            .concurrent_updates(True)
            .post_init(self._post_init)
            .build()
        )
        self.application.add_handler(MessageHandler(filters.TEXT & chat_filter, self.on_text))
        self.application.add_handler(CallbackQueryHandler(self.on_confirm, pattern=r"^confirm:(yes|no)$"))
        self.application.add_error_handler(self.on_error)

        self.application.job_queue.run_repeating(
            self._sweep_sessions, interval=SESSION_SWEEP_SEC, first=SESSION_SWEEP_SEC, name="sweep_sessions"
        )

    def is_allowed(self, chat_id: int) -> bool:
        return self.chat_id is None or chat_id == self.chat_id

    async def _post_init(self, application: Application) -> None:
        commands = [BotCommand(spec.name, spec.description) for spec in COMMANDS.values()]
        await application.bot.set_my_commands(commands)

    async def _send(self, context: ContextTypes.DEFAULT_TYPE, chat_id: int, reply: Reply | None) -> None:
        if reply is None:
            return
        markup = confirmation_keyboard() if reply.ask_confirmation else None
        await context.bot.send_message(chat_id=chat_id, text=reply.text, reply_markup=markup)

    async def on_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        chat = update.effective_chat
        if message is None or chat is None or not message.text:
            return
        reply = await self.conversations.handle_message(chat.id, message.text)
        await self._send(context, chat.id, reply)

    async def on_confirm(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        query = update.callback_query
        await query.answer()
        chat = update.effective_chat
        if chat is None or not self.is_allowed(chat.id):
            return
        answer = (query.data or "").split(":", 1)[1]
        # drop the buttons so the question cannot be answered twice
        await query.edit_message_reply_markup(reply_markup=None)
        reply = await self.conversations.handle_message(chat.id, answer)
        await self._send(context, chat.id, reply)

    async def _sweep_sessions(self, context: ContextTypes.DEFAULT_TYPE) -> None:
        self.conversations.expire_sessions()

    async def on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        logger.error(f"[telegram] error handling update: {context.error}", exc_info=context.error)
        if isinstance(update, Update) and update.effective_chat is not None:
            try:
                await context.bot.send_message(
                    chat_id=update.effective_chat.id,
                    text="Something went wrong: internal error\n\nPlease try again",
                )
            except Exception as e:
                logger.error(f"[telegram] could not report error to chat: {e}")

    def run(self) -> None:
        logger.info("TelegramBot starting...")
        self.application.run_polling(allowed_updates=Update.ALL_TYPES)

    def stop_running(self) -> None:
        self.application.stop_running()
