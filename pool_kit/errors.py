class InvalidInput(ValueError):
    """Buffer length or shape does not match the stated dimensions."""


class InferenceFailure(RuntimeError):
    """The inference collaborator failed to produce an output buffer."""
