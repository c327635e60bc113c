"""
API Routers - Organized endpoint handlers for the import API.

- imports: Preview, run, poll, cancel and export errors of submission imports
"""
