from .openai import OpenAIBackend

__all__ = ["OpenAIBackend"]
