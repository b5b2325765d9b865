"""
Dashboard module package exports.
"""

from .alerts import Alert, AlertLevel, AlertSettings, generate_alerts
from .model import AlertsTableModel, DashboardModel, DashboardStats, compute_stats

__all__ = [
    "Alert",
    "AlertLevel",
    "AlertSettings",
    "generate_alerts",
    "AlertsTableModel",
    "DashboardModel",
    "DashboardStats",
    "compute_stats",
]
