"""
Domain Layer - Entities and services for workbook ingestion and allocation.

This module contains:
- entities/: Workbook cells, cost categories, discipline blocks, WBS nodes, line items
- services/: Header detection, block extraction, allocation, WBS building, validation
"""
