"""
Gemini (Google) dealer and showdown judge using an OpenAI-compatible endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .openai_base import LLMDealer, LLMJudge

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai"


@dataclass
class GeminiDealer(LLMDealer):
    """
    Dealer strategy backed by Google Gemini.

    Set the following environment variables (or pass the parameters directly):
        - GEMINI_API_KEY
        - GEMINI_MODEL (default: gemini-2.5-flash)
        - GEMINI_API_BASE (if using a self-hosted proxy)
    """

    default_model: str = field(default="gemini-2.5-flash", init=False)
    default_name: str = field(default="Gemini", init=False)
    env_prefix: str = field(default="GEMINI", init=False)
    default_base_url: str = field(default=GEMINI_BASE_URL, init=False)


@dataclass
class GeminiJudge(LLMJudge):
    default_model: str = field(default="gemini-2.5-flash", init=False)
    default_name: str = field(default="GeminiJudge", init=False)
    env_prefix: str = field(default="GEMINI", init=False)
    default_base_url: str = field(default=GEMINI_BASE_URL, init=False)
