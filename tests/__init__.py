"""
Test suite for the task-manager API.

This package contains:
- unit/: validators, token signing, query parsing, stores and the notifier
- integration/: user, task and avatar endpoints through the Flask test client
- security/: session revocation, tenant isolation and data-exposure checks
"""
