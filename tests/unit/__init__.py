"""Unit tests: validators, token signing, query parsing, stores and notifier."""
