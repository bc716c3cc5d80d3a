"""
Budget Import - Excel budget ingestion and cost-category allocation engine.
"""

__version__ = "1.0.0"
