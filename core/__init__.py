#!/usr/bin/env python3
"""
Core Module for Microservices Architecture

Shared infrastructure components for the marketplace services.

COMPONENTS:
    - config/: Environment-driven configuration and logging setup
    - postgres_client.py: asyncpg connection pool wrapper
    - nats_client.py: NATS JetStream event bus
    - auth_dependencies.py: FastAPI dependencies for gateway identity headers

USAGE:
    from core.config import settings, setup_logging
    from core.postgres_client import PostgresClientWrapper
    from core.nats_client import NATSEventBus
"""
