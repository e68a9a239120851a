"""
Core modules для finprim
"""
