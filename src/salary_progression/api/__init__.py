"""HTTP API for the salary progression engine."""
