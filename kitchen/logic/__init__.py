"""Core business logic layer.

Subpackages:
- catalog: categories and the unified product records
- recipes: recipe records, metadata upgrade and availability
- planning: the weekly meal plan
- importing: CSV product/recipe imports
- parsing: free-text ingredient parsing and product matching
- sync: mirroring to a remote document store
"""
__all__ = ["catalog", "recipes", "planning", "importing", "parsing", "sync"]
