"""
Exception hierarchy tests.

Maps to: pyembed/exceptions/
"""
