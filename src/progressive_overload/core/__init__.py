"""Pure training engine: progression, deload, aggregation and lifecycle rules."""
