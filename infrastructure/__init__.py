"""
Infrastructure Package
======================

Provides abstraction layers for external dependencies following the Dependency Inversion Principle.

Modules:
    - payments: Hosted checkout abstraction (Stripe, mock)
    - email: Email service abstraction (SMTP, mock)
    - events: Domain event bus (Redis pub/sub, in-memory)
    - observability: OpenTelemetry tracing setup

Services receive these through ``infrastructure.container`` so tests can swap
in the mock and in-memory implementations.
"""
