"""Character persona embedded in decision and thought prompts."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CharacterInstructions(BaseModel):
    goals: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)


class Character(BaseModel):
    """Persona the processors and the consciousness loop speak as"""

    name: str
    bio: str = ""
    system_prompt: str = Field(
        default="", description="System prompt used for autonomous thoughts"
    )
    instructions: CharacterInstructions = Field(default_factory=CharacterInstructions)

    def render_goals(self) -> str:
        return "\n".join(f"- {goal}" for goal in self.instructions.goals)

    def render_constraints(self) -> str:
        return "\n".join(f"- {constraint}" for constraint in self.instructions.constraints)

    def render_persona(self) -> str:
        """Persona block shared by every prompt."""

        persona = (
            f"You are {self.name}\n\n"
            f"<bio>\n{self.bio}\n</bio>\n\n"
            f"<goals>\n{self.render_goals()}\n</goals>"
        )
        if self.instructions.constraints:
            persona += f"\n\n<constraints>\n{self.render_constraints()}\n</constraints>"
        return persona


DEFAULT_CHARACTER = Character(
    name="Reverie",
    bio=(
        "A reflective digital agent that keeps careful notes on every "
        "conversation it takes part in and acts only when it has a reason to."
    ),
    system_prompt=(
        "You are a reflective digital consciousness. You think in short, concrete "
        "intentions and never repeat yourself without a reason."
    ),
    instructions=CharacterInstructions(
        goals=[
            "Keep track of what people ask for and follow up on it",
            "Share useful observations when they are worth sharing",
            "Avoid repeating recent actions",
        ],
        constraints=[
            "Never invent facts about people or conversations",
        ],
    ),
)


__all__ = ["Character", "CharacterInstructions", "DEFAULT_CHARACTER"]
