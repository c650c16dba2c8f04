"""
Detectors package - results table extraction
"""
from .table_extractor import TableExtractor, parse_rows

__all__ = ['TableExtractor', 'parse_rows']
