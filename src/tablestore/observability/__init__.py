"""
tablestore.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request context propagation so store log lines carry the request id.
"""

# Package marker.
