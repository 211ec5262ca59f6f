from .patterns import generate_search_patterns

__all__ = ["generate_search_patterns"]
