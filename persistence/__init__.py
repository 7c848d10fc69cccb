"""
Sample records, collection, reporting and export.
"""
