"""
Observability module for tipquest.

This module provides:
- Metrics collection with Prometheus
"""

__all__ = ["metrics"]
