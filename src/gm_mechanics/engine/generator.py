"""Monster template generation.

``MonsterGenerator`` asks an OpenAI-compatible chat-completions endpoint
(OpenRouter by default) for a full stat block when combat references a
monster nobody has defined. ``MonsterGenerationService`` runs those
requests fire-and-forget: spawning returns a placeholder immediately and
the finished template comes back later as a ``MonsterIdentified`` event.

Events are never applied here. They wait in the service inbox until the
owning ``CombatSession`` drains it, so generated templates enter game
state through the same path as every other mutation.
"""

from __future__ import annotations

import asyncio
import json
from collections import deque
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from gm_mechanics.core.config import AIProviderSettings, get_settings
from gm_mechanics.core.exceptions import (
    AIConnectionError,
    AIRateLimitError,
    AIResponseError,
    ConfigurationError,
    MonsterGenerationError,
)
from gm_mechanics.core.logging import get_logger
from gm_mechanics.models.monsters import MonsterTemplate
from gm_mechanics.models.world import World


logger = get_logger(__name__)

OPENROUTER_HEADERS = {
    "HTTP-Referer": "https://github.com/gm-mechanics",
    "X-Title": "GM Mechanics Core",
}

CREATURE_TYPES = (
    "Aberration|Beast|Celestial|Construct|Dragon|Elemental|Fey|Fiend|Giant|"
    "Humanoid|Monstrosity|Ooze|Plant|Undead"
)


# =============================================================================
# Requests & Events
# =============================================================================


@dataclass(frozen=True)
class WorldContext:
    """The slice of a world the generator prompt needs."""

    world_id: str
    name: str = ""
    brief_description: str = ""

    @classmethod
    def from_world(cls, world: World) -> WorldContext:
        return cls(
            world_id=world.id,
            name=world.name,
            brief_description=world.brief_description,
        )


@dataclass(frozen=True)
class GenerationRequest:
    """A request to replace a placeholder template.

    Attributes:
        monster_id: Placeholder template id; the generated template keeps it.
        monster_name: Display name to generate a stat block for.
        world: World context for the prompt.
    """

    monster_id: str
    monster_name: str
    world: WorldContext

    @property
    def key(self) -> str:
        return f"{self.world.world_id}:{self.monster_id.lower()}"


@dataclass(frozen=True)
class MonsterIdentified:
    """A generated template ready to be merged into game state."""

    world_id: str
    template: MonsterTemplate


class ContentGenerator(Protocol):
    """Anything that can turn a monster name into a template."""

    async def generate(
        self,
        monster_name: str,
        world: WorldContext,
        *,
        monster_id: str | None = None,
    ) -> MonsterTemplate: ...


# =============================================================================
# Generator
# =============================================================================


class MonsterGenerator:
    """Generate monster templates with a chat-completions model.

    Attributes:
        model: Model identifier.
        temperature: Sampling temperature.
    """

    def __init__(
        self,
        *,
        model: str | None = None,
        temperature: float | None = None,
        settings: AIProviderSettings | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            model: Model identifier; defaults to the configured generation model.
            temperature: Sampling temperature; defaults to the configured value.
            settings: Provider settings; defaults to the application settings.
            client: Pre-built ``AsyncOpenAI``-compatible client.
        """
        self._settings = settings or get_settings().ai
        self.model = model or self._settings.generation_model
        self.temperature = self._settings.temperature if temperature is None else temperature
        self._client = client

        logger.info("MonsterGenerator initialized", model=self.model)

    def _get_client(self) -> Any:
        """Get or create the async OpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI

            settings = self._settings
            if settings.default_provider == "openrouter":
                api_key = settings.openrouter_api_key
                if api_key is None:
                    raise ConfigurationError(
                        "OpenRouter API key not configured. Set GM_MECHANICS_OPENROUTER_API_KEY",
                        config_key="openrouter_api_key",
                    )
                self._client = AsyncOpenAI(
                    api_key=api_key.get_secret_value(),
                    base_url=settings.base_url,
                    default_headers=OPENROUTER_HEADERS,
                    timeout=settings.timeout_seconds,
                    max_retries=0,
                )
            else:
                api_key = settings.openai_api_key
                self._client = AsyncOpenAI(
                    api_key=api_key.get_secret_value() if api_key else None,
                    timeout=settings.timeout_seconds,
                    max_retries=0,
                )

        return self._client

    @staticmethod
    def build_prompt(monster_name: str, monster_id: str, world: WorldContext) -> str:
        """Build the stat-block prompt."""
        schema = {
            "id": monster_id,
            "name": monster_name,
            "type": CREATURE_TYPES,
            "cr": "1/4",
            "ac": 12,
            "hp": 20,
            "hitDice": "3d8+6",
            "stats": {"str": 10, "dex": 10, "con": 10, "int": 10, "wis": 10, "cha": 10},
            "resistances": ["fire"],
            "immunities": ["poison"],
            "vulnerabilities": ["cold"],
            "actions": [{"name": "Attack Name", "desc": "Attack description..."}],
        }
        return (
            f'Generate a D&D 5e monster definition for "{monster_name}".\n\n'
            "Context:\n"
            f"- World: {world.name}\n"
            f"- Description: {world.brief_description}\n\n"
            "Output JSON ONLY matching this schema. cr is a string; resistances, "
            "immunities and vulnerabilities are optional:\n"
            f"{json.dumps(schema, indent=2)}\n\n"
            "Ensure stats are appropriate for a standard encounter unless the name implies a boss."
        )

    @retry(
        retry=retry_if_exception_type((AIConnectionError, AIRateLimitError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _call_api(self, prompt: str) -> str:
        """Call the chat-completions API with retry logic.

        Raises:
            AIConnectionError: Endpoint unreachable (retried).
            AIRateLimitError: Rate limited (retried).
            AIResponseError: Any other API failure.
        """
        from openai import APIConnectionError, APIStatusError, RateLimitError

        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "system", "content": prompt}],
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except RateLimitError as exc:
            raise AIRateLimitError(
                f"Generation rate limit exceeded: {exc}",
                model=self.model,
                provider=self._settings.default_provider,
            ) from exc
        except APIConnectionError as exc:
            raise AIConnectionError(
                f"Failed to connect to generation endpoint: {exc}",
                model=self.model,
                provider=self._settings.default_provider,
            ) from exc
        except APIStatusError as exc:
            raise AIResponseError(
                f"Generation API error: {exc}",
                model=self.model,
                details={"status_code": exc.status_code},
            ) from exc

        result = response.choices[0].message.content or ""
        logger.debug("Generation response received", model=self.model, response_length=len(result))
        return result

    def _parse_json_response(self, response: str) -> dict[str, Any]:
        """Parse JSON from a model response, handling markdown code blocks.

        Raises:
            AIResponseError: If the response is not a JSON object.
        """
        text = response.strip()
        if text.startswith("```"):
            lines = text.split("\n")
            if lines[0].startswith("```"):
                lines = lines[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            text = "\n".join(lines)

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise AIResponseError(
                f"Failed to parse JSON from model response: {exc}",
                model=self.model,
                details={"response_preview": text[:500]},
            ) from exc

        if not isinstance(data, dict):
            raise AIResponseError(
                "Model response is not a JSON object",
                model=self.model,
                details={"response_preview": text[:500]},
            )
        return data

    async def generate(
        self,
        monster_name: str,
        world: WorldContext,
        *,
        monster_id: str | None = None,
    ) -> MonsterTemplate:
        """Generate a full template for a monster.

        Args:
            monster_name: Display name to generate.
            world: World context for the prompt.
            monster_id: Id the template must carry; defaults to the name.

        Raises:
            MonsterGenerationError: If the model output is not a valid template.
        """
        monster_id = monster_id or monster_name
        logger.info("Generating monster", monster=monster_name, world=world.world_id)

        raw = await self._call_api(self.build_prompt(monster_name, monster_id, world))
        data = self._parse_json_response(raw)

        data["id"] = monster_id
        data.setdefault("name", monster_name)
        data["needsGeneration"] = False
        data.pop("needs_generation", None)

        try:
            template = MonsterTemplate.model_validate(data)
        except PydanticValidationError as exc:
            raise MonsterGenerationError(
                f"Generated monster failed validation: {exc}",
                monster_name=monster_name,
                model=self.model,
            ) from exc

        logger.info(
            "Monster generated",
            monster=template.name,
            cr=template.cr,
            hp=template.hp,
            ac=template.ac,
        )
        return template


# =============================================================================
# Fire-and-forget Service
# =============================================================================


class MonsterGenerationService:
    """Schedule generation requests and collect their results.

    ``request`` never blocks and never raises for generator failures. When
    called inside a running event loop the request starts as a task right
    away; otherwise it is queued until ``drain()`` runs it. A name stays
    marked in flight until its request finishes, successfully or not, so a
    failed placeholder can be retried by a later spawn.
    """

    def __init__(self, generator: ContentGenerator | None = None) -> None:
        self._generator = generator
        self._in_flight: set[str] = set()
        self._queued: list[GenerationRequest] = []
        self._tasks: set[asyncio.Task[MonsterIdentified | None]] = set()
        self._inbox: deque[MonsterIdentified] = deque()

    @property
    def generator(self) -> ContentGenerator:
        if self._generator is None:
            self._generator = MonsterGenerator()
        return self._generator

    def is_in_flight(self, request: GenerationRequest) -> bool:
        return request.key in self._in_flight

    @property
    def has_pending(self) -> bool:
        """Whether any request is queued or running."""
        return bool(self._queued or self._tasks)

    def request(self, request: GenerationRequest) -> bool:
        """Schedule a request unless the same monster is already in flight.

        Returns:
            True if the request was scheduled.
        """
        if request.key in self._in_flight:
            logger.debug("Generation already in flight", monster=request.monster_name)
            return False

        self._in_flight.add(request.key)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._queued.append(request)
            logger.info("Generation queued", monster=request.monster_name)
            return True

        task = loop.create_task(self._run(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info("Generation scheduled", monster=request.monster_name)
        return True

    async def _run(self, request: GenerationRequest) -> MonsterIdentified | None:
        try:
            template = await self.generator.generate(
                request.monster_name,
                request.world,
                monster_id=request.monster_id,
            )
        except Exception:
            logger.exception(
                "Monster generation failed",
                monster=request.monster_name,
                world=request.world.world_id,
            )
            return None
        finally:
            self._in_flight.discard(request.key)

        template = template.model_copy(update={"id": request.monster_id, "needs_generation": False})
        event = MonsterIdentified(world_id=request.world.world_id, template=template)
        self._inbox.append(event)
        return event

    async def drain(self) -> list[MonsterIdentified]:
        """Run queued requests and wait for running ones.

        Events stay in the inbox as well; the return value is for callers
        that want to inspect what completed.
        """
        queued, self._queued = self._queued, []
        awaitables = [self._run(request) for request in queued]
        awaitables.extend(self._tasks)
        if not awaitables:
            return []
        results = await asyncio.gather(*awaitables)
        return [event for event in results if event is not None]

    def collect(self) -> list[MonsterIdentified]:
        """Pop every completed event from the inbox."""
        events: list[MonsterIdentified] = []
        while self._inbox:
            events.append(self._inbox.popleft())
        return events


__all__ = [
    "WorldContext",
    "GenerationRequest",
    "MonsterIdentified",
    "ContentGenerator",
    "MonsterGenerator",
    "MonsterGenerationService",
]
