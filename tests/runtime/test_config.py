from swarm.runtime.orchestration.config import DEFAULT_AGENT_PROMPTS, OrchestratorConfig
from swarm.runtime.orchestration.persona_loader import load_prompt_catalog, render_template


def test_default_catalog_has_four_agents():
    cfg = OrchestratorConfig()

    assert set(cfg.agent_prompts) == {"main", "science", "creativity", "critical_thinking"}
    assert cfg.default_agent_id == "main"
    assert cfg.memory_window == 10
    assert cfg.prompt_for("science") == DEFAULT_AGENT_PROMPTS["science"]


def test_prompt_for_blank_or_missing_prompt():
    cfg = OrchestratorConfig(agent_prompts={"main": "hi", "empty": "   "})

    assert cfg.prompt_for("empty") is None
    assert cfg.prompt_for("ghost") is None


def test_render_template_keeps_unknown_placeholders():
    rendered = render_template("Hello {name}, age group {age_group}", {"name": "Ada"})

    assert rendered == "Hello Ada, age group {age_group}"


def test_load_prompt_catalog_reads_txt_files(tmp_path):
    (tmp_path / "history.txt").write_text("You teach history to {audience}.\n", encoding="utf-8")
    (tmp_path / "blank.txt").write_text("   \n", encoding="utf-8")
    (tmp_path / "notes.md").write_text("ignored", encoding="utf-8")

    catalog = load_prompt_catalog(tmp_path, {"audience": "children"})

    assert catalog == {"history": "You teach history to children."}
    assert load_prompt_catalog(tmp_path / "missing") == {}


def test_from_env_overlays_prompt_directory(tmp_path, monkeypatch):
    (tmp_path / "main.txt").write_text("Custom onboarding prompt", encoding="utf-8")
    monkeypatch.setenv("SWARM_PROMPT_DIR", str(tmp_path))
    monkeypatch.setenv("SWARM_MEMORY_WINDOW", "4")
    monkeypatch.setenv("SWARM_MODEL", "gpt-test")

    cfg = OrchestratorConfig.from_env()

    assert cfg.prompt_for("main") == "Custom onboarding prompt"
    assert cfg.prompt_for("science") == DEFAULT_AGENT_PROMPTS["science"]
    assert cfg.memory_window == 4
    assert cfg.model == "gpt-test"
