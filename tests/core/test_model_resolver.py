"""
Test suite for ModelResolver.

Covers alias normalization, allow-list membership and silent fallback.
"""

import logging

import pytest

from threadchat.core.model_resolver import ModelResolver, normalize_model_label


@pytest.fixture
def resolver() -> ModelResolver:
    return ModelResolver(("gpt-4o", "gpt-4o-mini"), "gpt-4o-mini")


class TestNormalizeModelLabel:
    """Tests for alias rewriting."""

    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("gpt-4o", "gpt-4o"),
            ("GPT-4o", "gpt-4o"),
            ("gpt4o", "gpt-4o"),
            ("gpt 4o mini", "gpt-4o-mini"),
            ("gpt_4o_mini", "gpt-4o-mini"),
            ("4o-mini", "gpt-4o-mini"),
            ("chatgpt-4o-latest", "gpt-4o"),
            ("openai/gpt-4o", "gpt-4o"),
            ("gpt-4o-2024-08-06", "gpt-4o"),
            ("gpt-4o-mini-2024-07-18", "gpt-4o-mini"),
            ("  gpt-4o  ", "gpt-4o"),
        ],
    )
    def test_aliases_normalize_to_family(self, label: str, expected: str) -> None:
        assert normalize_model_label(label) == expected

    def test_unknown_label_is_only_cleaned(self) -> None:
        assert normalize_model_label("Claude 3 Opus") == "claude-3-opus"


class TestResolve:
    """Tests for resolve()."""

    def test_allowed_model_is_kept(self, resolver: ModelResolver) -> None:
        resolution = resolver.resolve("gpt-4o")

        assert resolution.model == "gpt-4o"
        assert not resolution.substituted
        assert resolution.warning is None

    def test_alias_resolves_without_substitution(self, resolver: ModelResolver) -> None:
        resolution = resolver.resolve("gpt-4o-2024-08-06")

        assert resolution.model == "gpt-4o"
        assert not resolution.substituted

    def test_unsupported_model_falls_back_to_default(self, resolver: ModelResolver) -> None:
        resolution = resolver.resolve("gpt-5")

        assert resolution.model == "gpt-4o-mini"
        assert resolution.requested == "gpt-5"
        assert resolution.substituted
        assert "gpt-5" in resolution.warning

    @pytest.mark.parametrize("label", ["gpt-5", "o1", "llama3", "???", "x" * 300, "gpt-4", "davinci"])
    def test_never_raises_for_unknown_labels(self, resolver: ModelResolver, label: str) -> None:
        resolution = resolver.resolve(label)

        assert resolution.model == resolver.default
        assert resolution.substituted

    @pytest.mark.parametrize("label", [None, "", "   "])
    def test_empty_label_selects_default_silently(self, resolver: ModelResolver, label) -> None:
        resolution = resolver.resolve(label)

        assert resolution.model == "gpt-4o-mini"
        assert not resolution.substituted
        assert resolution.warning is None

    def test_substitution_emits_warning_log(self, resolver: ModelResolver, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="threadchat.core.model_resolver"):
            resolver.resolve("gpt-5")

        assert any("Model substituted" in record.message for record in caplog.records)

    def test_default_outside_allow_list_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="not in the allow-list"):
            ModelResolver(("gpt-4o",), "gpt-4o-mini")
