"""
Master Processor - decides what to do with incoming messages

Builds a decision prompt from the character persona, ambient context and the
available outputs/actions, asks the inference backend for a
:class:`ProcessorDecision`, then delegates to a child processor or maps the
decision into a :class:`ProcessedResult`.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from ..core.character import DEFAULT_CHARACTER, Character
from ..llm.backend import InferenceBackend
from ..utils.time_context import get_time_context
from .base import (
    DEFAULT_CONTENT_LIMIT,
    DEFAULT_MAX_DELEGATION_DEPTH,
    BaseProcessor,
    content_to_text,
)
from .handlers import IOContext
from .models import EnrichedContext, ProcessedResult, ProcessorDecision

DEFAULT_GUIDANCE = """Only suggest an output or action when there is something specific to do.
If a request has already been handled, or an output has already been created,
do not take the same action again."""


class MasterProcessor(BaseProcessor):
    """Root processor for messages and short text inputs"""

    SYSTEM_PROMPT = ""

    def __init__(
        self,
        backend: InferenceBackend,
        character: Character = DEFAULT_CHARACTER,
        context: str = "",
        *,
        name: str = "master",
        description: str = "This processor handles messages or short text inputs.",
        guidance: str = DEFAULT_GUIDANCE,
        content_limit: int = DEFAULT_CONTENT_LIMIT,
        max_delegation_depth: int = DEFAULT_MAX_DELEGATION_DEPTH,
    ):
        super().__init__(
            name=name,
            description=description,
            backend=backend,
            character=character,
            content_limit=content_limit,
            max_delegation_depth=max_delegation_depth,
        )
        self.context = context
        self.guidance = guidance

    def build_prompt(
        self, content_text: str, other_context: str, io_context: IOContext | None
    ) -> str:
        outputs = (
            "\n".join(handler.describe() for handler in io_context.available_outputs)
            if io_context
            else ""
        )
        actions = (
            "\n".join(handler.describe() for handler in io_context.available_actions)
            if io_context
            else ""
        )

        return f"""{self.character.render_persona()}

<context>
{self.context}
</context>

Analyze the following content and decide what to do with it. Output only valid JSON

# New Content to process:
{content_text}

# Other context:
{other_context}

# Available Processors:
{self.describe_children()}

# Available Outputs:
{outputs}

# Available Actions:
{actions}

<guidance>
{self.guidance}
</guidance>

<thinking id="processor_decision">
1. Decide on what to do with the content. If an output or action is suggested, you should use it.
2. If you can't decide, delegate to a child processor or just return.
</thinking>

<thinking id="content_classification">
1. Content classification and type
2. Content enrichment (summary, topics, sentiment, entities, intent)
3. Determine if any child processors should handle this content
</thinking>

<thinking id="output_suggestion">
1. Suggested outputs/actions based on the content and the available handlers.
2. If the content is a message, use the personality of the character to determine if the output was successful.
3. If possible include a summary of the content in the output to avoid more processing.
</thinking>
"""

    async def process(
        self,
        content: Any,
        other_context: str,
        io_context: IOContext | None = None,
        *,
        visited: frozenset[str] | None = None,
        hops_remaining: int | None = None,
    ) -> ProcessedResult:
        visited = (visited or frozenset()) | {self.name}
        if hops_remaining is None:
            hops_remaining = self.max_delegation_depth

        content_text = content_to_text(content)
        available_outputs = io_context.output_names() if io_context else []
        logger.debug(f"Processor '{self.name}': processing {len(content_text)} chars")

        try:
            decision = await self.backend.evaluate(
                self.build_prompt(content_text, other_context, io_context),
                self.SYSTEM_PROMPT,
                ProcessorDecision,
            )

            child = self.resolve_delegate(
                decision.classification.delegate_to_processor,
                content,
                visited,
                hops_remaining,
            )
            if child is not None:
                logger.debug(f"Processor '{self.name}': delegating to '{child.name}'")
                other_context += (
                    f"\n\n# Summary of the content:\n{decision.enrichment.summary}"
                )
                return await child.process(
                    content,
                    other_context,
                    io_context,
                    visited=visited,
                    hops_remaining=hops_remaining - 1,
                )

            return ProcessedResult(
                content=content,
                metadata={
                    **decision.classification.context.model_dump(),
                    "content_type": decision.classification.content_type,
                },
                enriched_context=EnrichedContext(
                    **decision.enrichment.model_dump(),
                    time_context=get_time_context(),
                    related_memories=[],
                    available_outputs=available_outputs,
                ),
                update_tasks=decision.update_tasks,
                suggested_outputs=decision.suggested_outputs,
                already_processed=False,
            )

        except Exception as e:
            logger.error(f"Processor '{self.name}': processing failed: {e}")
            return self._create_degraded_result(content, content_text, available_outputs)

    @staticmethod
    def _create_degraded_result(
        content: Any, content_text: str, available_outputs: list[str]
    ) -> ProcessedResult:
        """Neutral result returned whenever classification fails"""
        return ProcessedResult(
            content=content,
            metadata={},
            enriched_context=EnrichedContext(
                summary=content_text[:100],
                topics=[],
                sentiment="neutral",
                entities=[],
                intent="unknown",
                time_context=get_time_context(),
                related_memories=[],
                available_outputs=available_outputs,
            ),
            update_tasks=[],
            suggested_outputs=[],
            already_processed=False,
        )


__all__ = ["MasterProcessor"]
