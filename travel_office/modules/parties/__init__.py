from .service import PartiesService, agents_for_service

__all__ = ["PartiesService", "agents_for_service"]
