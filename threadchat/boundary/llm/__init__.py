"""Language-model service boundary."""

from threadchat.boundary.llm.openai_gateway import OpenAIGateway, ThreadMessage

__all__ = ["OpenAIGateway", "ThreadMessage"]
