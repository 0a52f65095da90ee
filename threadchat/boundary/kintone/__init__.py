"""Kintone record store boundary."""

from threadchat.boundary.kintone.client import KintoneClient
from threadchat.boundary.kintone.records import ChatRecordRepository, DocumentRepository

__all__ = ["ChatRecordRepository", "DocumentRepository", "KintoneClient"]
