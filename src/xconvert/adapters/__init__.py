"""
Adapters Layer - External Integrations

This package contains adapters for external systems:
- Rate providers (HTTP API clients)
- Resilience policies wrapping outbound calls
"""
