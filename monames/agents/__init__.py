from .actor import AIActor, ROLE_LABELS, build_context, build_messages
from .personas import default_personas, default_selected_personas
from .prompts import (
    load_prompt_template, apply_prompt_template, format_board_for_prompt,
    format_history_for_prompt, format_current_clue,
)

__all__ = [
    "AIActor", "ROLE_LABELS", "build_context", "build_messages",
    "default_personas", "default_selected_personas",
    "load_prompt_template", "apply_prompt_template", "format_board_for_prompt",
    "format_history_for_prompt", "format_current_clue",
]
