from .model import UserSession
from .service import ALWAYS_ALLOWED, PAGES, AuthService, can_access

__all__ = ["UserSession", "ALWAYS_ALLOWED", "PAGES", "AuthService", "can_access"]
