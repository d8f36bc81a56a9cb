"""
WorkTracker - Source Package

The accounting engine of a personal work-hours and earnings tracker.

DESIGN PRINCIPLES:
1. Calculators are pure - same collections in, same numbers out
2. One mutation path, always followed by a full write-through
3. Invalid input is rejected before anything changes
4. Orphaned references degrade to zero, never to a crash
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "WorkTracker Team"
