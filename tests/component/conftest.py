"""
Component Test Layer Configuration

Structure:
    tests/component/
    └── campaign/    Service, HTTP API and client against an in-memory store

Usage:
    pytest tests/component -v
    pytest tests/component -m component -v
"""
import os

# Set testing environment BEFORE any imports
os.environ["ENV"] = "testing"
os.environ["ENVIRONMENT"] = "testing"
os.environ["NATS_ENABLED"] = "false"


def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "component: marks tests as component tests"
    )
