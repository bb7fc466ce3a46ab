"""
Integration tests for the learning controller and the CLI.
"""

import json

import pytest
from typer.testing import CliRunner

from langdrill.app import LearningController
from langdrill.cli import app
from langdrill.config import Settings, get_settings
from langdrill.core.errors import ConfigurationError
from langdrill.core.judge import HttpGradingJudge


@pytest.fixture
def settings(tmp_path):
    return Settings(base_dir=tmp_path, judge_url=None)


def profile_json(base_dir, lang="nl"):
    return json.loads((base_dir / "profiles" / f"{lang}.json").read_text(encoding="utf-8"))


class TestLearningController:
    """Tests for wiring and controller operations."""

    @pytest.mark.asyncio
    async def test_enable_and_close_persist(self, settings, tmp_path):
        controller = LearningController(settings)

        switched = controller.enable("Dutch")
        await controller.close()

        assert switched is False
        assert profile_json(tmp_path)["enabled"] is True

    @pytest.mark.asyncio
    async def test_toggle(self, settings, tmp_path):
        controller = LearningController(settings)

        assert controller.toggle_enabled() is True
        assert controller.toggle_enabled() is False
        await controller.close()

        assert profile_json(tmp_path)["enabled"] is False

    def test_unknown_language(self, settings):
        controller = LearningController(settings)

        with pytest.raises(ConfigurationError):
            controller.enable("klingon")

    def test_engine_uses_builtin_deck(self, settings):
        controller = LearningController(settings)

        question = controller.engine.next_question()

        assert question.item_id.startswith("nl-")
        assert controller.judge is None

    @pytest.mark.asyncio
    async def test_judge_only_outside_strict_free(self, tmp_path):
        (tmp_path / "profiles").mkdir(parents=True)
        (tmp_path / "profiles" / "nl.json").write_text(
            json.dumps({"lang": "nl", "settings": {"mode": "shared-llm"}}), encoding="utf-8",
        )

        without_url = LearningController(Settings(base_dir=tmp_path, judge_url=None))
        with_url = LearningController(Settings(base_dir=tmp_path, judge_url="http://localhost:9/v1"))

        assert without_url.judge is None
        assert isinstance(with_url.judge, HttpGradingJudge)
        assert with_url.engine.judge is with_url.judge
        await with_url.close()
        assert with_url.judge is None

    def test_refresh_content_updates_engine(self, settings, tmp_path):
        controller = LearningController(settings)
        (tmp_path / "caches" / "nl-extra.json").write_text(
            json.dumps([{"id": "extra-1", "type": "vocab", "prompt": "kaas", "answer": "cheese"}]),
            encoding="utf-8",
        )

        added = controller.refresh_content()

        assert added == 1
        assert "extra-1" in {item.id for item in controller.engine.deck}

    def test_refresh_content_replaces_existing_item(self, settings, tmp_path):
        controller = LearningController(settings)
        original = next(item for item in controller.engine.deck if item.id == "nl-v-huis")
        (tmp_path / "caches" / "nl-override.json").write_text(
            json.dumps([{"id": "nl-v-huis", "type": "vocab", "prompt": "huis", "answer": "home"}]),
            encoding="utf-8",
        )

        added = controller.refresh_content()

        replaced = next(item for item in controller.engine.deck if item.id == "nl-v-huis")
        assert added == 0
        assert original.answer != "home"
        assert replaced.answer == "home"

    @pytest.mark.asyncio
    async def test_reload_builds_fresh_judge_and_closes_all(self, tmp_path):
        (tmp_path / "profiles").mkdir(parents=True)
        (tmp_path / "profiles" / "nl.json").write_text(
            json.dumps({"lang": "nl", "settings": {"mode": "shared-llm"}}), encoding="utf-8",
        )
        controller = LearningController(Settings(base_dir=tmp_path, judge_url="http://localhost:9/v1"))
        first = controller.judge

        controller._load(controller.language)

        assert controller.judge is not first
        assert controller.engine.judge is controller.judge
        second = controller.judge
        await controller.close()
        assert first.client.is_closed
        assert second.client.is_closed


@pytest.fixture
def runner(monkeypatch, tmp_path):
    monkeypatch.setenv("LANGDRILL_BASE_DIR", str(tmp_path))
    monkeypatch.delenv("LANGDRILL_JUDGE_URL", raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield CliRunner()
    get_settings.cache_clear()


class TestCli:
    """Smoke tests for CLI commands."""

    def test_languages(self, runner):
        result = runner.invoke(app, ["languages"])

        assert result.exit_code == 0
        assert "Dutch" in result.output

    def test_enable_status_disable(self, runner, tmp_path):
        result = runner.invoke(app, ["enable", "nl"])
        assert result.exit_code == 0
        assert profile_json(tmp_path)["enabled"] is True

        result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "Streak" in result.output

        result = runner.invoke(app, ["disable"])
        assert result.exit_code == 0
        assert profile_json(tmp_path)["enabled"] is False

    def test_enable_unknown_language(self, runner):
        result = runner.invoke(app, ["enable", "klingon"])

        assert result.exit_code == 1
        assert "Unsupported language" in result.output

    def test_suspend_unsuspend(self, runner, tmp_path):
        assert runner.invoke(app, ["suspend", "nl-v-huis"]).exit_code == 0
        assert profile_json(tmp_path)["deck"]["suspendedCardIds"] == ["nl-v-huis"]

        assert runner.invoke(app, ["unsuspend", "nl-v-huis"]).exit_code == 0
        assert profile_json(tmp_path)["deck"]["suspendedCardIds"] == []

    def test_study_quit_immediately(self, runner, tmp_path):
        result = runner.invoke(app, ["study"], input="q\n")

        assert result.exit_code == 0
        assert profile_json(tmp_path)["stats"]["totalAttempts"] == 0

    def test_study_one_answer_with_hint(self, runner, tmp_path):
        result = runner.invoke(app, ["study", "--limit", "1"], input="h\nzzzzzzzz\n")

        assert result.exit_code == 0
        assert "Hint:" in result.output
        assert profile_json(tmp_path)["stats"]["totalAttempts"] == 1
        assert list((tmp_path / "logs").glob("nl-*.jsonl"))
