"""
Palawan Collective Portal - Source Package

An investor-facing site with an embedded project portal for tracking
construction tasks, labor and material purchases across projects.

DESIGN PRINCIPLES:
1. The record store is the single owner of every record
2. Only admins mutate; investors read
3. Derived costs are computed at save time, never trusted from input
4. AI proposes receipt rows → Human reviews → Only then commit
5. Persistence failures never take down the session
"""

__version__ = "1.0.0"
__author__ = "Palawan Collective Team"
