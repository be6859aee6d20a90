"""
PyStatus interpretation tests.

Maps to: pyembed/status.py
"""
