"""Session Attendance package.

Live classroom attendance organized by feature modules (sessions, attendance,
schedules) with a thin Flask controller layer over service/repository layers.
"""
