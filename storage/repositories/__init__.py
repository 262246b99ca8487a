from .items import ItemRepository
from .profiles import ProfileRepository

__all__ = ["ItemRepository", "ProfileRepository"]
