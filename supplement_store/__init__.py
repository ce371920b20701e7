"""
Supplement Store backend.
"""
