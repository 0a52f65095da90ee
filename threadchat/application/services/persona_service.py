"""
Persona configuration store.

Loads and saves named behavioural profiles (instructions plus generation
parameters) in the persona file area. Numeric parameters are coerced, never
rejected; the model goes through the model resolver at write time.

Dependencies: threadchat.boundary.storage, threadchat.core.model_resolver
System role: Persona configuration use cases
"""

import logging
import math
from collections.abc import Mapping
from typing import Any

from threadchat.boundary.storage.json_store import JsonFileStore, is_valid_key
from threadchat.core.exceptions import PersonaNotFoundError, ValidationError
from threadchat.core.model_resolver import ModelResolver
from threadchat.models.persona import DEFAULT_INSTRUCTIONS, GenerationParams, PersonaConfig

logger = logging.getLogger(__name__)

RESPONSE_FORMATS = ("auto", "text", "json_object")
_METADATA_MAX_KEYS = 16
_METADATA_MAX_KEY_LENGTH = 64
_METADATA_MAX_VALUE_LENGTH = 512

DEFAULT_TEMPERATURE = 0.7
DEFAULT_TOP_P = 1.0
DEFAULT_PENALTY = 0.0
DEFAULT_MAX_OUTPUT_TOKENS = 1800


def coerce_float(value: Any, default: float, lower: float, upper: float) -> float:
    """Parse a number, falling back to default; clamp into [lower, upper]."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return min(max(number, lower), upper)


def coerce_int(value: Any, default: int, lower: int, upper: int) -> int:
    """Parse an integer (fractions truncated), falling back to default; clamp."""
    number = coerce_float(value, float("nan"), float(lower), float(upper))
    if math.isnan(number):
        return default
    return int(number)


def coerce_metadata(value: Any) -> dict[str, str]:
    """Keep at most 16 string pairs within the service's length limits."""
    if not isinstance(value, Mapping):
        return {}
    metadata: dict[str, str] = {}
    for key, item in value.items():
        if len(metadata) >= _METADATA_MAX_KEYS:
            break
        if item is None:
            continue
        metadata[str(key)[:_METADATA_MAX_KEY_LENGTH]] = str(item)[:_METADATA_MAX_VALUE_LENGTH]
    return metadata


class PersonaService:
    """Persona configuration store backed by a JSON file area."""

    def __init__(
        self,
        store: JsonFileStore,
        resolver: ModelResolver,
        default_name: str = "default",
    ) -> None:
        """
        Initialize persona service.

        Args:
            store: Persona file area
            resolver: Model allow-list resolver
            default_name: Persona used when a session names none
        """
        self._store = store
        self._resolver = resolver
        self.default_name = default_name

    def default_persona(self, name: str | None = None) -> PersonaConfig:
        """Built-in persona returned whenever nothing is stored under a name."""
        return PersonaConfig(
            name=name or self.default_name,
            instructions=DEFAULT_INSTRUCTIONS,
            params=GenerationParams(
                model=self._resolver.default,
                temperature=DEFAULT_TEMPERATURE,
                max_output_tokens=DEFAULT_MAX_OUTPUT_TOKENS,
            ),
        )

    def update(
        self,
        name: str,
        instructions: str | None,
        params: Mapping[str, Any],
    ) -> PersonaConfig:
        """
        Create or overwrite a persona.

        Args:
            name: Persona name (file key)
            instructions: Instruction text, blank selects the built-in text
            params: Loosely typed generation parameters

        Returns:
            PersonaConfig: The persona as stored

        Raises:
            ValidationError: If the name is not a valid persona key
        """
        if not is_valid_key(name):
            raise ValidationError(
                "Persona name must be 1-64 characters of letters, digits, '_', '.' or '-'",
                field="name",
            )

        resolution = self._resolver.resolve(params.get("model"))
        response_format = str(params.get("response_format") or "auto").strip().lower()
        if response_format not in RESPONSE_FORMATS:
            response_format = "auto"

        persona = PersonaConfig(
            name=name,
            instructions=(instructions or "").strip() or DEFAULT_INSTRUCTIONS,
            params=GenerationParams(
                model=resolution.model,
                temperature=coerce_float(params.get("temperature"), DEFAULT_TEMPERATURE, 0.0, 2.0),
                top_p=coerce_float(params.get("top_p"), DEFAULT_TOP_P, 0.0, 1.0),
                presence_penalty=coerce_float(params.get("presence_penalty"), DEFAULT_PENALTY, -2.0, 2.0),
                frequency_penalty=coerce_float(params.get("frequency_penalty"), DEFAULT_PENALTY, -2.0, 2.0),
                max_output_tokens=coerce_int(
                    params.get("max_output_tokens"), DEFAULT_MAX_OUTPUT_TOKENS, 1, 128_000
                ),
                response_format=response_format,
                metadata=coerce_metadata(params.get("metadata")),
            ),
        )
        self._store.write(name, persona.model_dump(mode="json"))
        logger.info(
            "Persona saved: name=%s model=%s substituted=%s",
            name, persona.params.model, resolution.substituted,
        )
        return persona

    def load(self, name: str | None) -> PersonaConfig:
        """
        Load a persona, or the built-in default when none is stored. Never fails.

        Args:
            name: Persona name, None selects the default name
        """
        key = name or self.default_name
        if not is_valid_key(key):
            logger.warning("Invalid persona name %r, using built-in default", key)
            return self.default_persona(key)
        try:
            document = self._store.read(key)
        except (OSError, ValueError) as e:
            logger.warning("Unreadable persona %s, using built-in default: %s", key, e)
            return self.default_persona(key)
        if document is None:
            return self.default_persona(key)
        try:
            return PersonaConfig.model_validate(document)
        except ValueError as e:
            logger.warning("Invalid persona document %s, using built-in default: %s", key, e)
            return self.default_persona(key)

    def get(self, name: str) -> PersonaConfig:
        """
        Load a stored persona.

        Raises:
            PersonaNotFoundError: If nothing is stored under name
        """
        if not self.exists(name):
            raise PersonaNotFoundError(name)
        return self.load(name)

    def exists(self, name: str) -> bool:
        """True when a readable persona document is stored under name."""
        if not is_valid_key(name):
            return False
        try:
            return self._store.read(name) is not None
        except (OSError, ValueError) as e:
            logger.warning("Unreadable persona %s treated as not stored: %s", name, e)
            return False

    def list_names(self) -> list[str]:
        return self._store.keys()

    def delete(self, name: str) -> None:
        """
        Delete a stored persona.

        Raises:
            PersonaNotFoundError: If nothing is stored under name
        """
        if not is_valid_key(name) or not self._store.delete(name):
            raise PersonaNotFoundError(name)
        logger.info("Persona deleted: name=%s", name)
