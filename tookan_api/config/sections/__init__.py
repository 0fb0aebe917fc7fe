from .django import Django
from .sync import Sync
from .tookan import Tookan

__all__ = ["Django", "Sync", "Tookan"]
