"""
Mz Finance - Core Package

State management for a personal and family finance app: sessions and
household users, the synchronized finance store, and the derived figures
shown on dashboards and reports.

DESIGN PRINCIPLES:
1. Local first: every edit applies immediately, the remote copy follows
2. Remote failures are logged, never fatal
3. No silent corrections in validation
4. Storage and auth are swappable
"""

__version__ = "1.0.0"
__author__ = "Mz Finance Team"
