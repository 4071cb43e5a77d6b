"""
PhonePilot — natural-language device control.

Turns a spoken or typed command into a bounded sequence of UI actions,
planned by a language model from the current on-screen element tree.
"""

__version__ = "0.1.0"
