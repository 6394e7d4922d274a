"""Gemini client construction shared by the summarizer and image analyzer."""

import os

from google import genai


def read_api_key(env_var: str = "GEMINI_API_KEY") -> str:
    return (os.getenv(env_var) or "").strip()


def gemini_enabled(env_var: str = "GEMINI_API_KEY") -> tuple[bool, str]:
    """Quick check to show a clear reason when disabled."""
    if not read_api_key(env_var):
        return False, f"{env_var} not set"
    return True, "OK"


def make_client(env_var: str = "GEMINI_API_KEY") -> genai.Client:
    ok, reason = gemini_enabled(env_var)
    if not ok:
        raise RuntimeError(f"Gemini disabled: {reason}")
    return genai.Client(api_key=read_api_key(env_var))
