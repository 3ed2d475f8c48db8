from . import chat, explain, model_catalog, review, suggest, usage

__all__ = ["chat", "explain", "model_catalog", "review", "suggest", "usage"]
