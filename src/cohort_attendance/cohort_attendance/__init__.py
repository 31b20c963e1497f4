"""Cohort attendance package.

Attendance codes, self-service submission, admin marking, session locks,
roster/stats read-models and leave requests, organized by feature module
with a thin Flask controller layer over service/repository layers.
"""
