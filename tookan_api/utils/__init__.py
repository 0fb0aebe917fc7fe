from .datetime import coerce_datetime, ensure_aware, is_placeholder_datetime, parse_datetime

__all__ = ["coerce_datetime", "ensure_aware", "is_placeholder_datetime", "parse_datetime"]
