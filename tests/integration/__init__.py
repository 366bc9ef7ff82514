"""
API test package for the task-manager endpoints.

Tests use the Flask test client and cover CRUD behaviour, validation
errors, listing queries and avatar upload.
"""
