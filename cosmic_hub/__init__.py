# Cosmic Hub - Dashboard analytics core
"""
Deadline risk, red flag aggregation and chat moderation rules for the
Cosmic Hub project-management platform.
"""

__version__ = "1.0.0"
