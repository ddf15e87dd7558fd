"""
Core abstractions.

- ports.py: Protocols the reminder engine depends on (Clock, TaskSource, Notifier, ...)
- clock.py: the production Clock
"""
