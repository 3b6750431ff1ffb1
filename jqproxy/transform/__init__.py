from .engine import apply, compile_filter

__all__ = ["apply", "compile_filter"]
