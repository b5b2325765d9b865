from .service import AlertSettings, CompanySettings, Settings, SettingsService

__all__ = ["AlertSettings", "CompanySettings", "Settings", "SettingsService"]
