"""Core: connection, execution, parameters and errors."""
