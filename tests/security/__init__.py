"""Security tests: session handling, tenant isolation and data exposure."""
