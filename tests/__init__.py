"""Test suite for the hostnote API."""
