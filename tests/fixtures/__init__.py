"""Test fixtures for the JMAP client.

This package provides reusable test fixtures:
- session: Session documents, canned method responses, a FakeTransport
  and a mocked invocation engine
"""
