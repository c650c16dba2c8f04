"""
Core package - data model, errors and logging for the seat monitor
"""
