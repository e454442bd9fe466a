"""Prompt rendering for LLM-backed decision oracles.

Provides ``PromptManager``, a Jinja2-based template engine that renders a
``SessionContext`` into a prompt string, and ``parse_decision`` which turns
the model's raw reply back into a ``Decision``.
"""

from renewal_workflow.prompt.manager import PromptManager
from renewal_workflow.prompt.parser import parse_decision

__all__ = ["PromptManager", "parse_decision"]
