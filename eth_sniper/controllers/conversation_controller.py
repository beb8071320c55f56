"""
Controller driving the multi-turn command conversation of each chat.

Every inbound text goes through ``handle_message``. A chat is either idle,
collecting the parameters of a command one message at a time, or waiting for
a yes/no confirmation of a prepared trade. Messages of one chat are handled
one at a time under that chat's lock; different chats proceed concurrently.

``/cancel`` skips the lock so it is never stuck behind a slow lookup. It
resets the session, which bumps its generation; a lookup that finishes
afterwards sees the new generation and its result is dropped.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Dict, List, Optional

from eth_sniper.controllers.command_controller import CommandController
from eth_sniper.enums.conversation_state import ConversationState
from eth_sniper.models.command import CommandKind, CommandSpec, is_command, parse_command
from eth_sniper.models.reply import Reply
from eth_sniper.models.session import ChatSession
from eth_sniper.repositories.session_repository import SessionRepository
from eth_sniper.utils import formatters
from eth_sniper.utils.errors import (
    GatewayError,
    StateError,
    TransientGatewayError,
    ValidationError,
)
from eth_sniper.utils.log_config import logger_manager, log_function

logger = logger_manager.setup_logger(__name__)

MAX_FAILURES = 3
MAX_CHAT_LOCKS = 2000
YES_ANSWERS = {"yes", "y"}
NO_ANSWERS = {"no", "n"}


def _join(*parts: Optional[str]) -> str:
    return "\n\n".join(p for p in parts if p)


class ConversationController:
    def __init__(
        self,
        commands: CommandController,
        sessions: SessionRepository | None = None,
        timeout: float = 300.0,
        max_failures: int = MAX_FAILURES,
        max_locks: int = MAX_CHAT_LOCKS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.commands = commands
        self.sessions = sessions or SessionRepository()
        self.timeout = timeout
        self.max_failures = max_failures
        self.max_locks = max_locks
        self._clock = clock
        self._locks: Dict[int, asyncio.Lock] = {}

    def _lock_for(self, chat_id: int) -> asyncio.Lock:
        lock = self._locks.get(chat_id)
        if lock is None:
            if len(self._locks) >= self.max_locks:
                # drop about half of the idle locks; a held lock is never dropped
                idle = [k for k, v in self._locks.items() if not v.locked()]
                for k in idle[:len(idle) // 2 + 1]:
                    self._locks.pop(k, None)
            lock = self._locks[chat_id] = asyncio.Lock()
        return lock

    @property
    def max_addresses(self) -> int:
        return self.commands.cfg.max_watches_per_chat

    def _is_stale(self, session: ChatSession, now: float) -> bool:
        return not session.is_idle and now - session.last_activity >= self.timeout

    # ---------- entry point ----------
    async def handle_message(self, chat_id: int, text: str) -> Optional[Reply]:
        """Process one inbound message; ``None`` means nothing should be sent."""
        text = (text or "").strip()
        if not text:
            return None

        spec, args = parse_command(text)
        if spec is not None and spec.kind is CommandKind.CANCEL:
            return self.cancel(chat_id)

        async with self._lock_for(chat_id):
            now = self._clock()
            session = self.sessions.get_or_create(chat_id, now)
            if self._is_stale(session, now):
                logger.info(f"⌛ [chat {chat_id}] /{session.command.name if session.command else '?'} timed out")
                session.reset()
            session.last_activity = now

            try:
                if session.state is ConversationState.COLLECTING_PARAM:
                    return await self._on_param(session, text, spec)
                if session.state is ConversationState.CONFIRMING:
                    return self._on_confirm(session, text)
                return await self._on_idle(session, text, spec, args)
            except StateError as e:
                return Reply(str(e))

    def cancel(self, chat_id: int) -> Reply:
        session = self.sessions.get(chat_id)
        if session is None or session.is_idle or self._is_stale(session, self._clock()):
            if session is not None and not session.is_idle:
                session.reset()
            return Reply("Nothing to cancel. " + formatters.HELP_HINT)
        name = session.command.name if session.command else "command"
        session.reset(ConversationState.CANCELLED)
        logger.info(f"[chat {chat_id}] /{name} cancelled")
        return Reply("Current command is cancelled")

    @log_function
    def expire_sessions(self) -> List[int]:
        """Drop stale sessions; chats with a lookup in flight are left alone."""
        busy = {chat_id for chat_id, lock in self._locks.items() if lock.locked()}
        expired = self.sessions.expire_stale(self._clock(), self.timeout, skip=busy)
        if expired:
            logger.info(f"⌛ Expired {len(expired)} idle conversation(s): {expired}")
        return expired

    # ---------- states ----------
    async def _on_idle(self, session: ChatSession, text: str, spec: Optional[CommandSpec], args: List[str]) -> Reply:
        if spec is None:
            if is_command(text):
                raise StateError(f"Unknown command {text.split()[0]}. {formatters.HELP_HINT}")
            raise StateError(formatters.HELP_HINT)

        params = spec.params
        tokens = list(args)
        if params and params[-1].absorbs_rest and len(tokens) > len(params):
            head = len(params) - 1
            tokens = tokens[:head] + [" ".join(tokens[head:])]

        problems: List[str] = []
        values: List[Any] = []
        if len(tokens) > len(params):
            problems.append(f"expected {len(params)} argument(s), got {len(tokens)}")
        else:
            for param, token in zip(params, tokens):
                try:
                    values.append(param.validate(token, self.max_addresses))
                except ValidationError as e:
                    problems.append(f"{param.name}: {e}")
        if problems:
            logger.info(f"[chat {session.chat_id}] /{spec.name} rejected: {problems}")
            return Reply(formatters.usage_error(spec, problems))

        session.command = spec
        session.values = values
        session.step = len(values)
        session.failures = 0
        session.state = ConversationState.COLLECTING_PARAM
        if session.current_param is not None:
            return Reply(_join(*self._warnings(session), session.current_param.prompt))
        return await self._complete(session)

    async def _on_param(self, session: ChatSession, text: str, spec: Optional[CommandSpec]) -> Optional[Reply]:
        param = session.current_param
        if param is None:
            # parameters already complete but the command never finished
            session.reset()
            return await self._on_idle(session, text, spec, parse_command(text)[1])
        try:
            value = param.validate(text, self.max_addresses)
        except ValidationError as e:
            session.failures += 1
            if session.failures >= self.max_failures:
                name = session.command.name
                session.reset()
                logger.info(f"[chat {session.chat_id}] /{name} aborted after {self.max_failures} invalid values")
                return Reply(f"❌ /{name} cancelled after {self.max_failures} invalid attempts. {formatters.HELP_HINT}")
            hint = f"(/{spec.name} is not a valid {param.name}; send /cancel to abort first)" if spec else None
            return Reply(_join(f"⚠️ {e}", hint, param.prompt))

        session.failures = 0
        session.values.append(value)
        session.step += 1
        if session.current_param is not None:
            warning = param.warning(value) if param.warning else None
            return Reply(_join(warning, session.current_param.prompt))
        return await self._complete(session)

    def _on_confirm(self, session: ChatSession, text: str) -> Reply:
        answer = text.strip().lower()
        if answer in YES_ANSWERS:
            intent = session.intent
            session.reset(ConversationState.COMPLETED)
            return self.commands.confirm_trade(session.chat_id, intent)
        if answer in NO_ANSWERS:
            intent = session.intent
            session.reset(ConversationState.CANCELLED)
            return self.commands.discard_trade(session.chat_id, intent)

        session.failures += 1
        if session.failures >= self.max_failures:
            session.reset()
            return Reply(f"❌ Confirmation cancelled after {self.max_failures} unclear answers.")
        return Reply("Please answer yes or no (or /cancel).", ask_confirmation=True)

    # ---------- completion ----------
    def _warnings(self, session: ChatSession) -> List[str]:
        out = []
        for param, value in zip(session.command.params, session.values):
            if param.warning:
                warning = param.warning(value)
                if warning:
                    out.append(warning)
        return out

    async def _complete(self, session: ChatSession) -> Optional[Reply]:
        """All parameters are collected: run or prepare the command."""
        spec = session.command
        chat_id = session.chat_id
        generation = session.generation
        warnings = self._warnings(session)
        args = spec.build_args(session.values)

        try:
            if spec.requires_confirmation:
                intent, reply = await asyncio.to_thread(self.commands.prepare_trade, chat_id, args)
            else:
                intent, reply = None, await self.commands.execute(spec.kind, chat_id, args)
        except TransientGatewayError as e:
            if session.generation != generation:
                return None
            logger.warning(f"[chat {chat_id}] /{spec.name} transient failure: {e}")
            return self._retry_last_step(session, e)
        except (GatewayError, ValidationError) as e:
            if session.generation != generation:
                return None
            logger.info(f"[chat {chat_id}] /{spec.name} failed: {e}")
            session.reset()
            return Reply(formatters.GENERIC_ERROR.format(error=e))
        except Exception as e:
            if session.generation != generation:
                return None
            logger.exception(f"[chat {chat_id}] /{spec.name} crashed: {e}")
            session.reset()
            return Reply(formatters.GENERIC_ERROR.format(error="internal error"))

        if session.generation != generation:
            logger.info(f"[chat {chat_id}] /{spec.name} result dropped; the command was cancelled")
            return None

        if intent is None:
            session.reset(ConversationState.COMPLETED)
            if spec.requires_confirmation:
                return reply
            return Reply(_join(*warnings, reply.text), ask_confirmation=reply.ask_confirmation)

        session.intent = intent
        session.state = ConversationState.CONFIRMING
        session.failures = 0
        return Reply(_join(*warnings, reply.text), ask_confirmation=True)

    def _retry_last_step(self, session: ChatSession, error: GatewayError) -> Reply:
        """Step back one parameter so the user can resend it to retry."""
        source = error.provider or "The data provider"
        if not session.values:
            session.reset()
            return Reply(formatters.GENERIC_ERROR.format(error=f"{source} is not responding"))
        session.values.pop()
        session.step -= 1
        session.failures = 0
        session.state = ConversationState.COLLECTING_PARAM
        param = session.current_param
        return Reply(
            f"⏳ {source} is not responding right now. "
            f"Send the {param.name} again to retry, or /cancel."
        )
