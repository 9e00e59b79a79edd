"""QR Attendance package.

This package is organized by feature modules (students, attendance, reconciliation, ...)
with a thin Flask controller layer over service/repository layers.
The attendance ledger lives on the Student aggregate; services never trust the
derived counters and always recompute them from the history.
"""
