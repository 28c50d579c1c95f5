"""
Consciousness loop - periodic autonomous thoughts

Each ``think()`` asks the inference backend for one thought based on the
character persona, the ambient context and the recent self-conversation, then
records it as an ``internal_thought`` memory in the singleton self
conversation. A background task can repeat this on an interval.
"""

from __future__ import annotations

import asyncio
import inspect
from collections import deque
from collections.abc import Awaitable, Callable, Iterable

from loguru import logger

from ..config.settings import ConsciousnessSettings
from ..core.character import DEFAULT_CHARACTER, Character
from ..core.conversation import Conversation, Memory
from ..core.conversation_manager import ConversationManager
from ..core.identity import CONSCIOUSNESS_PLATFORM, CONSCIOUSNESS_SENTINEL_ID
from ..llm.backend import InferenceBackend
from ..utils.time_context import to_iso, utc_now
from .models import Thought, ThoughtResponse

ERROR_THOUGHT_CONTENT = "Error occurred during thought process"
MEMORIES_PER_CONVERSATION = 5

ContextProvider = Callable[[], Awaitable[str] | str]


class RecentActions:
    """Fixed-capacity FIFO of recent thought contents"""

    def __init__(self, capacity: int = 10):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._items: deque[str] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._items.maxlen or 0

    def push(self, item: str) -> None:
        self._items.append(item)

    def items(self) -> list[str]:
        return list(self._items)

    def render(self) -> str:
        return "\n".join(self._items)

    def __len__(self) -> int:
        return len(self._items)


class Consciousness:
    """Generates and records autonomous thoughts"""

    def __init__(
        self,
        backend: InferenceBackend,
        conversation_manager: ConversationManager,
        get_context: ContextProvider | None = None,
        character: Character = DEFAULT_CHARACTER,
        settings: ConsciousnessSettings | None = None,
    ):
        self.backend = backend
        self.conversation_manager = conversation_manager
        self.get_context = get_context
        self.character = character
        self.settings = settings or ConsciousnessSettings()
        self.recent_actions = RecentActions(self.settings.recent_actions_capacity)
        self._background_task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> Thought:
        return await self.think()

    def start_background(self, interval_seconds: float | None = None) -> asyncio.Task:
        """Run ``think()`` every ``interval_seconds`` on the running loop."""

        if self._background_task and not self._background_task.done():
            logger.debug("Consciousness: background loop already running")
            return self._background_task

        interval = (
            self.settings.interval_seconds
            if interval_seconds is None
            else interval_seconds
        )
        loop = asyncio.get_running_loop()
        self._background_task = loop.create_task(self._background_loop(interval))
        self._background_task.add_done_callback(self._handle_background_task_completion)
        logger.info(f"Consciousness: background loop started (interval={interval}s)")
        return self._background_task

    def stop(self) -> None:
        if self._background_task and not self._background_task.done():
            self._background_task.cancel()
            logger.info("Consciousness: background loop stopped")

    def is_running(self) -> bool:
        return self._background_task is not None and not self._background_task.done()

    async def _background_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            thought = await self.think()
            logger.debug(f"Consciousness: background thought ({thought.type})")

    @staticmethod
    def _handle_background_task_completion(task: asyncio.Task) -> None:
        try:
            if task.exception():
                logger.error(f"Consciousness: background loop failed: {task.exception()}")
        except asyncio.CancelledError:
            logger.debug("Consciousness: background loop was cancelled")

    # ------------------------------------------------------------------
    # Thinking
    # ------------------------------------------------------------------
    async def think(self) -> Thought:
        """Generate one thought, record it and return it.

        Generation failures yield an ``error`` thought instead of raising.
        Recording the thought in the self-conversation is best-effort.
        """
        try:
            thought = await self.generate_thought()
        except Exception as e:
            logger.error(f"Consciousness.think: Failed to generate thought: {e}")
            return Thought(
                type="error",
                content=ERROR_THOUGHT_CONTENT,
                timestamp=utc_now(),
                metadata={"error": str(e)},
            )

        conversation_id = None
        try:
            conversation = await self.conversation_manager.ensure_conversation(
                CONSCIOUSNESS_SENTINEL_ID, CONSCIOUSNESS_PLATFORM
            )
            conversation_id = conversation.id
            await self.conversation_manager.add_memory(
                conversation_id,
                thought.content,
                {"type": "internal_thought", "source": "consciousness"},
            )
        except Exception as e:
            logger.warning(
                f"Consciousness.think: Failed to record thought in {conversation_id}: {e}"
            )

        self.recent_actions.push(thought.content)
        return thought.model_copy(
            update={"metadata": {**thought.metadata, "conversation_id": conversation_id}}
        )

    async def generate_thought(self) -> Thought:
        conversation = await self.conversation_manager.get_conversation_by_platform_id(
            CONSCIOUSNESS_SENTINEL_ID, CONSCIOUSNESS_PLATFORM
        )
        recent_memories = self.get_recent_memories(
            [conversation] if conversation else [],
            limit=self.settings.recent_memory_limit,
        )
        context = await self._load_context()

        response = await self.backend.evaluate(
            self.build_prompt(context, recent_memories),
            self.character.system_prompt,
            ThoughtResponse,
        )

        return Thought(
            type="internal_thought",
            source="consciousness",
            content=response.thought,
            timestamp=utc_now(),
            metadata={
                **response.context.model_dump(),
                "thought_type": response.thought_type,
                "reasoning": response.reasoning,
                "suggested_actions": [
                    action.model_dump() for action in response.suggested_actions
                ],
                "min_confidence": self.settings.min_confidence,
            },
        )

    async def _load_context(self) -> str:
        if self.get_context is None:
            return ""
        context = self.get_context()
        if inspect.isawaitable(context):
            context = await context
        return context or ""

    @staticmethod
    def get_recent_memories(
        conversations: Iterable[Conversation], limit: int = 10
    ) -> list[Memory]:
        """Most recent memories across conversations, newest first."""

        memories: list[Memory] = []
        for conversation in conversations:
            memories.extend(conversation.get_memories(MEMORIES_PER_CONVERSATION))
        memories.sort(key=lambda memory: memory.timestamp, reverse=True)
        return memories[:limit]

    def build_prompt(self, context: str, recent_memories: list[Memory]) -> str:
        memories = "\n".join(
            f"[{to_iso(memory.timestamp)}] {memory.content}" for memory in recent_memories
        )
        return f"""{self.character.render_persona()}

<context>
{context}
</context>

<recent_thoughts>
{memories}
</recent_thoughts>

<recent_actions>
{self.recent_actions.render()}
</recent_actions>

Generate one new thought. Output only valid JSON

<thinking id="thought_generation">
1. Review the recent thoughts and actions and do not repeat them.
2. Pick a different category of action than the last one where possible.
3. Keep the thought short and concrete, as an intention you could act on.
4. Suggest actions only when there is a clear platform and purpose for them.
</thinking>
"""


__all__ = ["Consciousness", "RecentActions", "ERROR_THOUGHT_CONTENT"]
