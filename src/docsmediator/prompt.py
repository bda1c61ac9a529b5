"""Composite prompt assembly.

The prompt is a fixed sequence of labeled blocks joined with blank lines:

  1. ``SYSTEM INSTRUCTIONS``  (only when instructions were supplied)
  2. ``DOCS FOR <library>``   (one per library with documentation, in order)
  3. ``PROJECT CONTEXT``      (placeholder text when none was supplied)
  4. ``USER QUESTION``
"""

from __future__ import annotations

from dataclasses import dataclass, field

NO_PROJECT_CONTEXT = "(no project context provided)"


@dataclass
class DocsBlock:
    library: str
    text: str

    def render(self) -> str:
        return f"=== DOCS FOR {self.library} ===\n{self.text.strip()}\n=== END DOCS ==="


@dataclass
class PromptAssembly:
    message: str
    project_context: str = ""
    system_instructions: str = ""
    docs: list[DocsBlock] = field(default_factory=list)

    def blocks(self) -> list[str]:
        blocks: list[str] = []
        if self.system_instructions.strip():
            blocks.append(
                "=== SYSTEM INSTRUCTIONS ===\n"
                f"{self.system_instructions.strip()}\n"
                "=== END SYSTEM ==="
            )
        blocks.extend(block.render() for block in self.docs)
        blocks.append(
            f"=== PROJECT CONTEXT ===\n{self.project_context.strip() or NO_PROJECT_CONTEXT}"
        )
        blocks.append(f"=== USER QUESTION ===\n{self.message}")
        return blocks

    def render(self) -> str:
        return "\n\n".join(self.blocks())
