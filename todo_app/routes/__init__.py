"""
Routes package for the task-manager API.

This package contains route blueprints:
- health: liveness probe
- users: signup, login/logout, profile and avatar endpoints
- tasks: owner-scoped task CRUD and listing
"""
