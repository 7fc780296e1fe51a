"""
Scheduling Domain

Pure scheduling logic plus the booking workflow that sits on top of it.

Modules:
- time_slots.py     # 48 half-hour slot labels, parsing and formatting
- date_ranges.py    # Sunday..Saturday aligned month/week windows
- calendar_grid.py  # Month cells, week slot rows, per-resource colours
- conflicts.py      # Overlap detection and injectable conflict policies
- schemas.py        # Slot, window, cell, form and actor models
- service.py        # AppointmentScheduler: validate, check, persist, resync

Only service.py talks to the remote API; everything else is side-effect free.
"""
