"""
EZD6 roll resolution and resource economy engine.

Pure rules behind an EZD6 character sheet: keyword rules, dice pool
evaluation, and tag-linked resource replenishment.
"""

__version__ = "0.1.0"
