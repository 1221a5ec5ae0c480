"""Shipping line back-office API: auth, vessel schedules, health probes."""

__version__ = "1.0.0"
