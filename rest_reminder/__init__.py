"""
Rest Time Reminder

Plays a bell and/or shows a desktop notification on a break schedule.
"""

__version__ = "1.2.0"
