"""Tests for monster generation and the fire-and-forget service."""

from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace
from typing import Any

import httpx
import openai
import pytest
from tenacity import wait_none

from gm_mechanics.core.config import AIProviderSettings
from gm_mechanics.core.exceptions import AIConnectionError, AIResponseError, MonsterGenerationError
from gm_mechanics.engine.generator import (
    GenerationRequest,
    MonsterGenerationService,
    MonsterGenerator,
    WorldContext,
)
from gm_mechanics.models import World


WORLD = WorldContext(world_id="w1", name="Greyhawk", brief_description="A city of thieves.")


class FakeCompletions:
    """Stands in for ``client.chat.completions``."""

    def __init__(self, responses: list[Any]) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        message = SimpleNamespace(content=item)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(*responses: Any) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(list(responses))))


@pytest.fixture
def ai_settings(monkeypatch: pytest.MonkeyPatch) -> AIProviderSettings:
    monkeypatch.delenv("GM_MECHANICS_OPENROUTER_API_KEY", raising=False)
    return AIProviderSettings()


def make_generator(settings: AIProviderSettings, *responses: Any) -> MonsterGenerator:
    return MonsterGenerator(model="test-model", settings=settings, client=fake_client(*responses))


def request(monster_id: str = "void_spider", name: str = "Void Spider") -> GenerationRequest:
    return GenerationRequest(monster_id=monster_id, monster_name=name, world=WORLD)


class TestRequests:
    """Tests for request and context records."""

    def test_key_is_world_scoped(self) -> None:
        assert request("Void_Spider").key == "w1:void_spider"

    def test_world_context_from_world(self, sample_world: World) -> None:
        context = WorldContext.from_world(sample_world)

        assert context.world_id == "w1"
        assert context.name == "Greyhawk"
        assert context.brief_description == "A city of thieves and wizards."


class TestMonsterGenerator:
    """Tests for the chat-completions generator."""

    def test_build_prompt(self) -> None:
        prompt = MonsterGenerator.build_prompt("Void Spider", "void_spider", WORLD)

        assert 'monster definition for "Void Spider"' in prompt
        assert "- World: Greyhawk" in prompt
        assert "- Description: A city of thieves." in prompt
        assert '"id": "void_spider"' in prompt

    def test_parse_plain_json(self, ai_settings: AIProviderSettings) -> None:
        generator = make_generator(ai_settings)

        assert generator._parse_json_response('{"hp": 5}') == {"hp": 5}

    def test_parse_fenced_json(self, ai_settings: AIProviderSettings) -> None:
        """Test markdown code fences are stripped."""
        generator = make_generator(ai_settings)

        assert generator._parse_json_response('```json\n{"hp": 5}\n```') == {"hp": 5}

    def test_parse_invalid_json(self, ai_settings: AIProviderSettings) -> None:
        generator = make_generator(ai_settings)

        with pytest.raises(AIResponseError):
            generator._parse_json_response("The monster has 20 HP.")

    def test_parse_non_object(self, ai_settings: AIProviderSettings) -> None:
        generator = make_generator(ai_settings)

        with pytest.raises(AIResponseError):
            generator._parse_json_response("[1, 2]")

    def test_generate(self, ai_settings: AIProviderSettings) -> None:
        """Test the generated template keeps the requested id."""
        payload = {
            "id": "something_else",
            "name": "Void Spider",
            "type": "Aberration",
            "cr": 2,
            "ac": 14,
            "hp": 32,
            "stats": {"dex": 17},
            "needsGeneration": True,
            "actions": [{"name": "Bite", "desc": "Melee Weapon Attack."}],
        }
        generator = make_generator(ai_settings, json.dumps(payload))

        template = asyncio.run(generator.generate("Void Spider", WORLD, monster_id="void_spider"))

        assert template.id == "void_spider"
        assert template.needs_generation is False
        assert template.cr == "2"
        assert template.hp == 32

        call = generator._client.chat.completions.calls[0]
        assert call["model"] == "test-model"
        assert call["response_format"] == {"type": "json_object"}

    def test_generate_fills_missing_name(self, ai_settings: AIProviderSettings) -> None:
        generator = make_generator(ai_settings, '{"hp": 12}')

        template = asyncio.run(generator.generate("Mire Hag", WORLD))

        assert template.name == "Mire Hag"
        assert template.id == "Mire Hag"

    def test_generate_invalid_template(self, ai_settings: AIProviderSettings) -> None:
        """Test a schema mismatch surfaces as MonsterGenerationError."""
        generator = make_generator(ai_settings, '{"name": "Void Spider", "hp": "lots"}')

        with pytest.raises(MonsterGenerationError) as exc_info:
            asyncio.run(generator.generate("Void Spider", WORLD))

        assert isinstance(exc_info.value, AIResponseError)
        assert exc_info.value.details["monster_name"] == "Void Spider"

    def test_connection_error_retried(
        self,
        ai_settings: AIProviderSettings,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test a transient connection failure is retried."""
        monkeypatch.setattr(MonsterGenerator._call_api.retry, "wait", wait_none())
        failure = openai.APIConnectionError(request=httpx.Request("POST", "https://example.test"))
        generator = make_generator(ai_settings, failure, '{"hp": 9}')

        template = asyncio.run(generator.generate("Mire Hag", WORLD))

        assert template.hp == 9
        assert len(generator._client.chat.completions.calls) == 2

    def test_connection_error_exhausted(
        self,
        ai_settings: AIProviderSettings,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(MonsterGenerator._call_api.retry, "wait", wait_none())
        failures = [
            openai.APIConnectionError(request=httpx.Request("POST", "https://example.test"))
            for _ in range(3)
        ]
        generator = make_generator(ai_settings, *failures)

        with pytest.raises(AIConnectionError):
            asyncio.run(generator.generate("Mire Hag", WORLD))

    def test_missing_openrouter_key(self, ai_settings: AIProviderSettings) -> None:
        """Test building a client without a key fails with ConfigurationError."""
        from gm_mechanics.core.exceptions import ConfigurationError

        generator = MonsterGenerator(settings=ai_settings)

        with pytest.raises(ConfigurationError):
            generator._get_client()


class TestMonsterGenerationService:
    """Tests for MonsterGenerationService."""

    def test_request_outside_loop_queues(self, generation_service: MonsterGenerationService) -> None:
        assert generation_service.request(request())
        assert generation_service.has_pending
        assert generation_service.is_in_flight(request())

    def test_duplicate_request_ignored(self, generation_service: MonsterGenerationService) -> None:
        """Test a monster already in flight is not requested twice."""
        generation_service.request(request())

        assert not generation_service.request(request("VOID_SPIDER"))

    def test_drain_runs_queued(self, generation_service: MonsterGenerationService, fake_generator) -> None:
        generation_service.request(request())

        events = asyncio.run(generation_service.drain())

        assert len(events) == 1
        assert events[0].world_id == "w1"
        assert events[0].template.id == "void_spider"
        assert events[0].template.needs_generation is False
        assert fake_generator.calls == [("Void Spider", "void_spider")]
        assert not generation_service.is_in_flight(request())
        assert not generation_service.has_pending

    def test_collect_pops_inbox(self, generation_service: MonsterGenerationService) -> None:
        generation_service.request(request())
        asyncio.run(generation_service.drain())

        assert len(generation_service.collect()) == 1
        assert generation_service.collect() == []

    def test_failure_releases_in_flight(
        self,
        generation_service: MonsterGenerationService,
        fake_generator,
    ) -> None:
        """Test a failed generation is logged and can be retried."""
        fake_generator.fail = True
        generation_service.request(request())

        events = asyncio.run(generation_service.drain())

        assert events == []
        assert generation_service.collect() == []
        assert not generation_service.is_in_flight(request())
        assert generation_service.request(request())

    def test_request_inside_loop_starts_task(
        self,
        generation_service: MonsterGenerationService,
        fake_generator,
    ) -> None:
        async def scenario() -> list[Any]:
            generation_service.request(request())
            assert generation_service.has_pending
            return await generation_service.drain()

        events = asyncio.run(scenario())

        assert [event.template.id for event in events] == ["void_spider"]
        assert len(fake_generator.calls) == 1

    def test_drain_nothing_pending(self, generation_service: MonsterGenerationService) -> None:
        assert asyncio.run(generation_service.drain()) == []
