"""Circuit Quest Backend: HTTP API over the circuit engine."""
