from .service import ItineraryService, conversion_notes, fit_days, validate_itinerary

__all__ = ["ItineraryService", "conversion_notes", "fit_days", "validate_itinerary"]
