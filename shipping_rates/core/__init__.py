"""
Core utilities for shipping_rates.
"""
