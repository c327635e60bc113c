"""
Field-visit submission import.

Bulk-loads historical supervision visit data exported from a spreadsheet
into the PocketBase submission store.
"""

__version__ = "0.1.0"
