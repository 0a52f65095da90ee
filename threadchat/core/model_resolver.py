"""
Model safety resolver.

Normalizes a free-text model label (caller supplied or persona configured)
into a member of a fixed allow-list. Unknown labels fall back to the default
model with a warning instead of failing the request.

Dependencies: None (pure domain layer)
System role: Model allow-list enforcement
"""

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Dated snapshots resolve to their family, e.g. gpt-4o-2024-08-06 -> gpt-4o
_SNAPSHOT_SUFFIX = re.compile(r"^(?P<family>.+?)-\d{4}-\d{2}-\d{2}$")
_PROVIDER_PREFIX = re.compile(r"^(?:openai)[/:]")
_SEPARATORS = re.compile(r"[\s_]+")
_REPEATED_HYPHENS = re.compile(r"-{2,}")

_ALIASES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^(?:chat)?gpt-?4-?o-?mini(?:-latest)?$"), "gpt-4o-mini"),
    (re.compile(r"^4o-?mini$"), "gpt-4o-mini"),
    (re.compile(r"^(?:chat)?gpt-?4-?o(?:-latest)?$"), "gpt-4o"),
    (re.compile(r"^4o$"), "gpt-4o"),
)


@dataclass(frozen=True)
class ModelResolution:
    """Outcome of resolving a model label."""

    model: str
    requested: str | None
    substituted: bool = False
    warning: str | None = None


def normalize_model_label(label: str) -> str:
    """
    Apply the deterministic alias rewrites to a model label.

    Args:
        label: Raw model label

    Returns:
        str: Normalized label (may still be outside the allow-list)
    """
    candidate = label.strip().lower()
    candidate = _PROVIDER_PREFIX.sub("", candidate)
    candidate = _SEPARATORS.sub("-", candidate)
    candidate = _REPEATED_HYPHENS.sub("-", candidate).strip("-")

    snapshot = _SNAPSHOT_SUFFIX.match(candidate)
    if snapshot:
        candidate = snapshot.group("family")

    for pattern, target in _ALIASES:
        if pattern.match(candidate):
            return target
    return candidate


class ModelResolver:
    """Resolves model labels against an allow-list with a fixed default."""

    def __init__(self, allowed: tuple[str, ...] | list[str], default: str) -> None:
        """
        Initialize resolver.

        Args:
            allowed: Allow-listed model identifiers
            default: Fallback model, must belong to the allow-list

        Raises:
            ValueError: If the default is not allow-listed
        """
        self._allowed = tuple(dict.fromkeys(allowed))
        if default not in self._allowed:
            raise ValueError(f"Default model {default!r} is not in the allow-list {self._allowed}")
        self._default = default

    @property
    def allowed(self) -> tuple[str, ...]:
        return self._allowed

    @property
    def default(self) -> str:
        return self._default

    def resolve(self, label: str | None) -> ModelResolution:
        """
        Resolve a model label to an allow-listed model. Never raises.

        An empty label selects the default silently; a non-empty label that
        does not normalize into the allow-list is substituted by the default
        and flagged with a warning.

        Args:
            label: Requested model label, possibly empty

        Returns:
            ModelResolution: Chosen model and substitution flags
        """
        if label is None or not label.strip():
            return ModelResolution(model=self._default, requested=None)

        normalized = normalize_model_label(label)
        if normalized in self._allowed:
            return ModelResolution(model=normalized, requested=label)

        warning = (
            f"Model '{label}' is not supported; using '{self._default}' instead"
        )
        logger.warning(
            "Model substituted: requested=%s normalized=%s used=%s",
            label, normalized, self._default,
        )
        return ModelResolution(
            model=self._default,
            requested=label,
            substituted=True,
            warning=warning,
        )
