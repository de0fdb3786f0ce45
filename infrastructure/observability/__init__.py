from .tracing import add_span_attributes, setup_tracing, tracer


__all__ = ["add_span_attributes", "setup_tracing", "tracer"]
