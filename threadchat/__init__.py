"""Kintone thread chat relay."""
