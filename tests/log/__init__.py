"""
Logging tests.

Maps to: pyembed/_logging.py
"""
