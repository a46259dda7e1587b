# =======================================================================================
# lockmaster/__init__.py - Package Initialization
# =======================================================================================
"""
LockMaster - Property Access Control Portal

Backend for managing residents, smart locks, gateways, credentials and
time-based access schedules across a property, with TTLock cloud import.
"""

__version__ = "1.0.0"
__author__ = "LockMaster Team"
