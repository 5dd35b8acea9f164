"""Teardown orchestrator components.

Provides:
- Settings loaded from the environment and .env
- Structured logging
- A Terraform Cloud API client
- The destroy, poll and delete sequence
"""
