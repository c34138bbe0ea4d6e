"""
Tests Package - Unit and Integration Tests

Test structure:
- tests/fakes.py - Scripted UserAPI double for dispatcher tests
- tests/conftest.py - Shared pytest fixtures
- tests/test_*.py - One module per component

HTTP traffic is stubbed with httpx.MockTransport; nothing leaves the process.
"""
