"""autopunch package.

Automates the daily clock-in / clock-out against the attendance portal for
many users. Organized by feature modules (vault, portal, attendance,
schedules, users) with a thin Flask controller layer over service/repository
layers.
"""
