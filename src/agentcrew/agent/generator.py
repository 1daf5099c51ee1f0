"""
Structured-generation clients for agentcrew.

This module is the only place that *directly* calls an LLM.  Everything else (agents, the
orchestrator, tools) stays model-agnostic and only sees :meth:`BaseGenerator.generate`, which
turns a prompt and a pydantic model into a validated instance of that model.

We support two back-ends out of the box:

1. **OpenAI** chat completions with a JSON-schema response format.
2. **Anthropic** messages, with the schema embedded in the system prompt.

Additional providers can be added by subclassing :class:`BaseGenerator` and registering via
:func:`register_generator`.
"""

import json
import logging
import re
import time
from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Any,
    Callable,
    Dict,
    Optional,
    Type,
    TypeVar,
)

from pydantic import (
    BaseModel,
    ValidationError,
)

from agentcrew.config import settings

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class GenerationError(RuntimeError):
    """Raised when a structured generation keeps failing after every retry."""


# ---------------------------------------------------------------------------
# Registry helpers
# ---------------------------------------------------------------------------
_GENERATOR_REGISTRY: dict[str, Type["BaseGenerator"]] = {}


def register_generator(name: str) -> Callable:
    """Decorator to register a generator class under *name*."""

    def wrapper(cls: Type["BaseGenerator"]) -> Type["BaseGenerator"]:
        _GENERATOR_REGISTRY[name] = cls
        return cls

    return wrapper


def load_generator(name: str | None = None) -> "BaseGenerator":
    """
    Factory that returns an instantiated generator.

    Fallback order:
    1. *name* arg
    2. ``settings.PLANNER`` env option
    3. default: ``"openai"``
    """

    target = name or getattr(settings, "PLANNER", "openai")
    cls = _GENERATOR_REGISTRY.get(target.lower())
    if cls is None:
        raise ValueError(f"Generator '{target}' is not registered.")
    return cls()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _drop_nulls(value: Any) -> Any:
    """Remove ``None`` members from JSON objects so they count as "not set"."""
    if isinstance(value, dict):
        return {k: _drop_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_nulls(v) for v in value]
    return value


def _sanitize_json_string(content: str) -> str:
    """Clean up JSON strings returned by LLMs."""
    # Strip markdown code blocks if present
    if "```" in content:
        match = re.search(r"```(?:json)?\s*(.+?)```", content, re.DOTALL)
        if match:
            content = match.group(1).strip()

    # Remove control characters except whitespace
    content = "".join(ch for ch in content if ch >= " " or ch in "\n\r\t")

    # Find the outermost matching braces
    open_idx = content.find("{")
    if open_idx >= 0:
        brace_count = 0
        in_string = False
        escaped = False
        for i in range(open_idx, len(content)):
            ch = content[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
            elif ch == '"':
                in_string = True
            elif ch == "{":
                brace_count += 1
            elif ch == "}":
                brace_count -= 1
                if brace_count == 0:
                    return content[open_idx : i + 1]

    return content


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------
class BaseGenerator(ABC):
    """Abstract client that converts a prompt into an instance of a pydantic model."""

    def __init__(
        self,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.max_retries = settings.GENERATION_MAX_RETRIES if max_retries is None else max_retries
        self.retry_delay = settings.GENERATION_RETRY_DELAY if retry_delay is None else retry_delay
        self._sleep = sleep

    def generate(
        self, prompt: str, response_model: Type[M], attachment: Optional[str] = None
    ) -> M:
        """
        Ask the provider for an object matching *response_model*.

        Any failure (transport error, empty response, unparsable or invalid JSON) is retried up to
        :attr:`max_retries` more times with a fixed :attr:`retry_delay` pause in between.

        Parameters
        ----------
        prompt:
            The full textual prompt.
        response_model:
            Pydantic model the answer must validate against.
        attachment:
            Optional base64 image passed to the provider alongside the prompt.

        Raises
        ------
        GenerationError
            When every attempt failed.  The last failure is chained as the cause.
        """
        schema = response_model.model_json_schema()
        attempts = self.max_retries + 1
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                content = self._complete(prompt, schema, attachment)
                if not content or not content.strip():
                    raise ValueError("Provider returned an empty response")
                logger.debug("%s response: %s", type(self).__name__, content)
                return self._parse_response(content, response_model)
            except Exception as exc:  # noqa: BLE001  # pylint: disable=broad-except
                last_error = exc
                if attempt == attempts:
                    break
                logger.warning(
                    "Generation attempt %d/%d failed: %s. Retrying in %.0f seconds.",
                    attempt,
                    attempts,
                    exc,
                    self.retry_delay,
                )
                self._sleep(self.retry_delay)

        logger.error("Generation failed %d times in a row, giving up: %s", attempts, last_error)
        raise GenerationError(
            f"Structured generation failed after {attempts} attempts: {last_error}"
        ) from last_error

    @staticmethod
    def _parse_response(content: str, response_model: Type[M]) -> M:
        """Parse and validate the LLM response using Pydantic."""
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError:
            parsed = json.loads(_sanitize_json_string(content))
        try:
            return response_model.model_validate(_drop_nulls(parsed))
        except ValidationError as exc:
            logger.error("Failed to validate LLM response: %s", exc)
            raise

    @abstractmethod
    def _complete(
        self, prompt: str, json_schema: Dict[str, Any], attachment: Optional[str]
    ) -> str | None:
        """Send one request to the provider and return its raw text answer."""


# ---------------------------------------------------------------------------
# Concrete generators
# ---------------------------------------------------------------------------
@register_generator("openai")
class OpenAIGenerator(BaseGenerator):
    """OpenAI-based generator using a JSON-schema response format."""

    def _complete(
        self, prompt: str, json_schema: Dict[str, Any], attachment: Optional[str]
    ) -> str | None:
        import openai  # pylint: disable=import-outside-toplevel

        client = openai.OpenAI(api_key=settings.OPENAI_API_KEY)

        content: Any = prompt
        if attachment:
            content = [
                {"type": "text", "text": prompt},
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:image/jpeg;base64,{attachment}"},
                },
            ]

        resp = client.chat.completions.create(
            model=settings.OPENAI_MODEL,
            messages=[{"role": "user", "content": content}],
            temperature=0.2,
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": json_schema.get("title", "response"),
                    "schema": json_schema,
                },
            },
        )
        return resp.choices[0].message.content


@register_generator("anthropic")
class AnthropicGenerator(BaseGenerator):
    """Anthropic Claude-based generator."""

    SYSTEM_PROMPT = """\
Respond with exactly one JSON object that validates against the JSON schema below.
No markdown fences, no commentary before or after the object.

JSON schema:
"""

    def _complete(
        self, prompt: str, json_schema: Dict[str, Any], attachment: Optional[str]
    ) -> str | None:
        import anthropic  # pylint: disable=import-outside-toplevel

        client = anthropic.Anthropic(api_key=settings.ANTHROPIC_API_KEY)

        content: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
        if attachment:
            content.append(
                {
                    "type": "image",
                    "source": {"type": "base64", "media_type": "image/jpeg", "data": attachment},
                }
            )

        response = client.messages.create(
            model=settings.ANTHROPIC_MODEL,
            max_tokens=8192,
            system=self.SYSTEM_PROMPT + json.dumps(json_schema, indent=2),
            messages=[{"role": "user", "content": content}],
            temperature=0.2,
        )

        # Handle different content block types from Anthropic API
        texts = [block.text for block in response.content if block.type == "text"]
        if not texts:
            return None
        return _sanitize_json_string("".join(texts))
