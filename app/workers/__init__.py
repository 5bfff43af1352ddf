"""
Workers module for background services.

This module contains:
- analysis_scheduler: automatic soil analysis on the dashboard-selected interval
"""

from app.workers.analysis_scheduler import AnalysisScheduler

__all__ = ["AnalysisScheduler"]
