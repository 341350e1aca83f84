"""
Helpers for testing code that uses crdreg
"""
