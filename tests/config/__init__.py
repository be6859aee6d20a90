"""
Config resolution tests.

Maps to: pyembed/config.py
"""
