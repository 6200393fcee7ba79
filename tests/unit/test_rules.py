"""Rules file loading and validation."""

from pathlib import Path

import pytest

from src.rules.loader import load_rules, parse_rules

PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.fixture
def valid_text() -> str:
    return (PROJECT_ROOT / "rules.yaml").read_text()


def test_project_rules_file_loads():
    rules = load_rules(PROJECT_ROOT / "rules.yaml")
    assert rules.app.name == "constructx"
    assert rules.auth.password_min_length >= 8
    assert rules.rbac.roles["owner"] == ["*"]
    assert rules.dashboards.max_widgets >= len(rules.dashboards.default_widgets)
    assert rules.scheduling.honor_planned_start is True


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_rules(tmp_path / "nope.yaml")


def test_yaml_syntax_error():
    with pytest.raises(ValueError, match="Invalid YAML"):
        parse_rules("app: [unclosed")


def test_schema_error(valid_text):
    broken = valid_text.replace("password_min_length: 8", "password_min_length: eight")
    with pytest.raises(ValueError, match="validation failed"):
        parse_rules(broken)


def test_fenced_block_extracted(valid_text):
    wrapped = f"# Rules\n\nSome notes.\n\n```yaml\n{valid_text}\n```\n\nTrailer.\n"
    assert parse_rules(wrapped).app.rules_version == "1.0"


def test_scheduling_defaults(valid_text):
    start = valid_text.index("\nscheduling:") + 1
    end = valid_text.index("\ndashboards:") + 1
    trimmed = valid_text[:start] + "scheduling: {}\n\n" + valid_text[end:]
    rules = parse_rules(trimmed)
    assert rules.scheduling.near_critical_days == 1.0
    assert rules.scheduling.float_epsilon == pytest.approx(1e-6)
