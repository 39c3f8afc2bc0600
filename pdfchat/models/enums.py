"""Enumeration types for pdfchat data models."""

from enum import Enum


class EndpointKind(str, Enum):
    NATIVE_COMPLETION = "native-completion"
    NATIVE_CHAT = "native-chat"
    OPENAI_CHAT = "openai-chat"


class PayloadShape(str, Enum):
    STREAMING = "streaming"
    OUTPUT_LIST = "output-list"
    CHOICES = "choices"
    RESULTS = "results"
    MESSAGES = "messages"
