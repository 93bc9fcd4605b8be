"""Spoken read-outs of fired reminders.

Text is rendered to an audio file with pyttsx3 and sent to the user's chat as
a Telegram voice message, so it plays on the user's own device. Voice is an
enhancement: every engine or delivery failure is logged and swallowed,
nothing here raises to the caller.
"""

import asyncio
import logging
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable

import pyttsx3
from telegram import Bot

logger = logging.getLogger(__name__)


class VoiceAnnouncer:
    """Renders text to speech and delivers it as a voice message.

    pyttsx3 runs one event loop per engine at a time, so every render goes
    through a single worker thread, in order. Each chat has at most one
    read-out in flight; a new one for the same chat replaces it.
    """

    def __init__(
        self,
        bot: Bot | None = None,
        rate: int = 180,
        volume: float = 1.0,
        engine_factory: Callable[[], Any] = pyttsx3.init,
    ):
        self.bot = bot
        self.rate = rate
        self.volume = volume
        self._engine_factory = engine_factory
        self._engine: Any = None
        self._worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="voice")
        self._tasks: dict[int, asyncio.Task] = {}
        # Every read-out not yet finished, including stopped ones still unwinding
        self._pending: set[asyncio.Task] = set()
        self._closed = False

    async def speak(self, text: str, chat_id: int) -> None:
        """Start reading text out to a chat, replacing any read-out already on its way there."""
        if not text or not text.strip():
            return
        if self._closed:
            logger.warning("Voice announcer is closed, dropping read-out")
            return

        self.stop(chat_id)
        task = asyncio.create_task(self._run(text.strip(), chat_id))
        self._tasks[chat_id] = task
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        logger.debug(f"Reading out to {chat_id}: {text!r}")

    async def _run(self, text: str, chat_id: int) -> None:
        loop = asyncio.get_running_loop()
        fd, name = tempfile.mkstemp(prefix="remindcare-", suffix=".wav")
        os.close(fd)
        path = Path(name)
        try:
            rendered = await loop.run_in_executor(self._worker, self._render, text, path)
            if rendered:
                await self._deliver(path, chat_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Voice read-out to {chat_id} failed: {e}")
        finally:
            # Queued behind any render still writing the file
            self._worker.submit(path.unlink, missing_ok=True)

    def _get_engine(self) -> Any:
        if self._engine is None:
            try:
                engine = self._engine_factory()
                engine.setProperty("rate", self.rate)
                engine.setProperty("volume", self.volume)
            except Exception as e:
                logger.warning(f"Text-to-speech engine unavailable: {e}")
                return None
            self._engine = engine
        return self._engine

    def _render(self, text: str, path: Path) -> bool:
        """Worker thread: write text as speech to path."""
        engine = self._get_engine()
        if engine is None:
            return False
        engine.save_to_file(text, str(path))
        engine.runAndWait()
        return path.exists() and path.stat().st_size > 0

    async def _deliver(self, path: Path, chat_id: int) -> None:
        if self.bot is None:
            logger.debug(f"No bot to deliver voice to {chat_id}")
            return
        with path.open("rb") as audio:
            await self.bot.send_voice(chat_id=chat_id, voice=audio)

    def stop(self, chat_id: int | None = None) -> None:
        """Drop the read-out on its way to chat_id, or every read-out when None."""
        chats = list(self._tasks) if chat_id is None else [chat_id]
        for chat in chats:
            task = self._tasks.pop(chat, None)
            if task is not None and not task.done():
                # A render already on the worker finishes, but is never sent
                task.cancel()
                logger.debug(f"Voice read-out to {chat} stopped")

    def is_speaking(self, chat_id: int | None = None) -> bool:
        if chat_id is not None:
            task = self._tasks.get(chat_id)
            return task is not None and not task.done()
        return any(not task.done() for task in self._tasks.values())

    async def wait(self) -> None:
        """Wait until every read-out in flight is delivered or dropped."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def close(self) -> None:
        """Drop pending read-outs, then release the worker and the engine."""
        self._closed = True
        self.stop()
        await self.wait()
        await asyncio.to_thread(self._worker.shutdown)
        self._engine = None
