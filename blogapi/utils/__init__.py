from .time import normalize_time, utcnow

__all__ = ["normalize_time", "utcnow"]
