"""
API Services - Background work started by the import API routers.

- import_runner: Runs one import per request and records progress and result
"""
