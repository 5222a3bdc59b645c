"""
Stand-in backend used when no Ollama server is reachable.
Produces templated replies and can emit them word by word to mimic streaming.
"""

import asyncio
import random
from typing import AsyncGenerator, Awaitable, Callable, Optional

from ollama_agent.config import SIMULATED_CHUNK_DELAY_MS

ChunkCallback = Callable[[str], None]


class ResponseSimulator:
    """
    Templated replies for Simulated mode.

    Template choice is random; pass a seeded ``random.Random`` to pin it down.
    """

    TEMPLATES = (
        'Hello! I\'m {model}, and I\'m here to help you with your question: "{message}". '
        "How can I assist you further?",
        'That\'s an interesting question about "{message}". '
        "As {model}, I can provide insights on this topic.",
        'Thank you for your message: "{message}". '
        "I'm {model} and I'm ready to help you explore this topic in detail.",
        'I understand you\'re asking about "{message}". '
        "Let me share some thoughts on this as {model}.",
    )

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.rng = rng or random.Random()
        self._sleep = sleep

    def generate(self, user_text: str, model_name: str) -> str:
        template = self.rng.choice(self.TEMPLATES)
        return template.format(model=model_name, message=user_text)

    @staticmethod
    def split_chunks(text: str) -> list[str]:
        """Split on single spaces, keeping the separator on every word but the last."""
        words = text.split(" ")
        last = len(words) - 1
        return [word + (" " if i < last else "") for i, word in enumerate(words)]

    async def iter_chunks(
        self, text: str, delay_ms: float = SIMULATED_CHUNK_DELAY_MS
    ) -> AsyncGenerator[str, None]:
        """Yield chunks of ``text``, suspending for ``delay_ms`` before each one."""
        for chunk in self.split_chunks(text):
            await self._sleep(delay_ms / 1000)
            yield chunk

    async def stream_text(
        self,
        text: str,
        on_chunk: ChunkCallback,
        delay_ms: float = SIMULATED_CHUNK_DELAY_MS,
    ) -> str:
        async for chunk in self.iter_chunks(text, delay_ms):
            on_chunk(chunk)
        return text

    async def stream_generate(
        self,
        user_text: str,
        model_name: str,
        on_chunk: ChunkCallback,
        delay_ms: float = SIMULATED_CHUNK_DELAY_MS,
    ) -> str:
        """Generate a reply and feed it to ``on_chunk`` word by word. Returns the full text."""
        response = self.generate(user_text, model_name)
        return await self.stream_text(response, on_chunk, delay_ms)
