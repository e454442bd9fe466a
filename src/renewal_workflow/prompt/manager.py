"""PromptManager — Jinja2-based prompt renderer for LLM-backed oracles.

Loads templates from the ``template/`` directory and renders a
``SessionContext`` into a prompt string with JSON response instructions.
The SDK does not call any model itself; an oracle implementation renders
the prompt, sends it to its model, and hands the raw reply to
:func:`renewal_workflow.prompt.parser.parse_decision`.
"""

from __future__ import annotations

import json
from pathlib import Path

import jinja2

from renewal_workflow.models.context import SessionContext

DECISION_TEMPLATE = "decision.jinja2"


class PromptManager:
    """Jinja2-based prompt renderer.

    Args:
        template_dir: optional override for the template directory.
            Defaults to ``template/`` sibling of this module.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        if template_dir is None:
            template_dir = Path(__file__).parent / "template"
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._env.filters["tojson"] = lambda v: json.dumps(
            v, ensure_ascii=False, indent=2, default=str,
        )

    def render_decision(self, context: SessionContext) -> str:
        """Render the decision prompt for one workflow step."""
        return self.render(
            DECISION_TEMPLATE,
            ctx=context,
            session=context.session,
            employee=context.employee,
            license=context.license,
            requirements=context.requirements,
            history=context.history,
            event=context.event,
        )

    def render(self, template_name: str, **context) -> str:
        """Render a named template with arbitrary context."""
        template = self._env.get_template(template_name)
        return template.render(**context)
