"""
NativeConfig lifecycle and ownership tests.

Maps to: pyembed/native.py
"""
