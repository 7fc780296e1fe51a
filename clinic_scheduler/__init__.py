"""Appointment scheduling and calendar-windowing engine for the clinic app"""

__version__ = "0.1.0"
