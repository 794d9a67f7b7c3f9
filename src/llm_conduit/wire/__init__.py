"""Per-backend wire schemas: request ``TypedDict``s and response models."""

from . import anthropic, google, openai

__all__ = ["anthropic", "google", "openai"]
