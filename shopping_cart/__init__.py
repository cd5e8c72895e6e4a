"""
Shopping Cart - Event-Sourced Aggregate

This package models a shopping cart's lifecycle with a decide/apply discipline:
1. Commands are validated against business rules (decide)
2. Only validated commands produce events
3. Events are the only thing that mutates state (apply)
4. Replaying the event history rebuilds the exact same cart

Business rule violations are returned as values, never raised.
"""

__version__ = "1.0.0"
