"""
Effort Worker Tasks Package
"""

from ..celery_app import app

# Import all tasks to ensure they're registered with Celery
from .effort_tasks import find_best_efforts
from .power_tasks import estimate_power, fit_cda, smooth_altitude

__all__ = [
    "app",
    "estimate_power",
    "find_best_efforts",
    "fit_cda",
    "smooth_altitude",
]
