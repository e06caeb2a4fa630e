from pathlib import Path

from brain.prompt.system_prompt import SKILLS_PROMPT, build_system_prompt


def test_prompt_without_workspace() -> None:
    prompt = build_system_prompt()
    assert prompt.startswith(SKILLS_PROMPT)
    assert "Current UTC time: " in prompt
    assert "Always call get_brand_context before drafting" in prompt


def test_prompt_appends_workspace_files(tmp_path: Path) -> None:
    (tmp_path / "BRAND.md").write_text("Definitive trades on Base.\n")
    (tmp_path / "RULES.md").write_text("   \n")

    prompt = build_system_prompt(tmp_path)

    assert prompt.endswith("[BRAND.md]\nDefinitive trades on Base.")
    assert "[RULES.md]" not in prompt
