"""
Persona Loader - Agent prompt catalog from template files

WHAT: Loads agent system prompts from ``<agent_id>.txt`` templates
WHERE: swarm/runtime/orchestration/persona_loader.py - configuration layer
WHO: OrchestratorConfig.from_env when a prompt directory is configured
TIME: Template loading <10ms

Templates may carry ``{placeholders}``; unknown placeholders are left as-is so
a prompt referencing a variable the deployment does not supply still loads.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping


class _SafeDict(dict):
    def __missing__(self, key):  # type: ignore[override]
        return "{" + key + "}"


def render_template(text: str, variables: Mapping[str, str] | None = None) -> str:
    if not variables:
        return text
    return text.format_map(_SafeDict(variables))


def load_text(path: str | Path) -> str:
    p = Path(path).expanduser().resolve()
    return p.read_text(encoding="utf-8")


def load_prompt_catalog(directory: str | Path, variables: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return ``{agent_id: prompt}`` for every non-empty ``*.txt`` file in ``directory``."""

    root = Path(directory).expanduser()
    if not root.is_dir():
        return {}
    catalog: dict[str, str] = {}
    for path in sorted(root.glob("*.txt")):
        text = render_template(load_text(path), variables).strip()
        if text:
            catalog[path.stem] = text
    return catalog


__all__ = [
    "render_template",
    "load_text",
    "load_prompt_catalog",
]
