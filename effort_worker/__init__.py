"""
Effort Worker

This module provides Celery tasks for:
- Average power estimation from distance/time/altitude streams
- Fastest-segment (best effort) search across activities
- CdA fitting against rides with measured power
"""

# The analysis package must import without Celery configured, so the app is
# only built when a worker asks for it
def get_celery_app():
    from .celery_app import app
    return app

__all__ = ['get_celery_app']
