"""Ramadan Timer - Sehri and Iftar countdowns with local notifications."""

__version__ = "0.1.0"
