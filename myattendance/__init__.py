"""
MyAttendance: per-subject attendance tracking against a fixed academic calendar.
"""
