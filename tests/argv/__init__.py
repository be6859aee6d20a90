"""
Argument-vector marshaling tests.

Maps to: pyembed/argv.py
"""
