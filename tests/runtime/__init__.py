"""
Runtime binding tests, including calls into the running interpreter.

Maps to: pyembed/_bindings.py
"""
