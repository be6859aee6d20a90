"""
PyConfig layout tests.

Maps to: pyembed/layout.py
"""
