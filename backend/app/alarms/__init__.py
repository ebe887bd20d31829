"""Alarms — unit health aggregation and the alarm ledger.

Turns per-indicator health readings of STATCOM modules into a worst-case
status per unit and an active/cleared alarm ledger with filtering and
CSV export.

Integration points:
  1. main.py: start AlarmMonitor + include router
  2. services/demo_poller.py publishes mock snapshots on 'units:health'
"""
