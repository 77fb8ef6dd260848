"""Error taxonomy for the circuit engine.

Engine operations report these as result values; they are raised only at
internal seams (request parsing, catalog lookups) and caught before they
leave a ``CircuitState`` operation.
"""


class CircuitError(Exception):
    """Base class for circuit engine errors."""


class RejectedPlacement(CircuitError):
    """A drop outside the kind's acceptance region, or into the wrong region."""


class MalformedComponentTemplate(RejectedPlacement, ValueError):
    """Unknown kind, or a magnitude that is not a positive finite number."""


class InvalidLevel(CircuitError, LookupError):
    """Requested level id is outside the catalog."""

    def __init__(self, level_id):
        super().__init__(f"No level with id {level_id!r}")
        self.level_id = level_id
