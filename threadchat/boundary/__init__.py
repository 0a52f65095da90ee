"""Outbound boundaries: record store, language-model service, persona file area."""
