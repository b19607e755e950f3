"""
progressive-overload: next-week targets, deloads and exercise history
for a personal lifting log.
"""

__version__ = "0.1.0"
