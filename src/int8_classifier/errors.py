"""Exception types raised by the inference pipeline."""


class ConfigurationError(ValueError):
    """Invalid paths, empty datasets, mismatched metadata or bad model graph."""


class ImageDecodeError(OSError):
    """An image file could not be decoded."""


class AcceleratorError(RuntimeError):
    """The accelerator runtime reported a failed job."""


class AcceleratorTimeoutError(AcceleratorError, TimeoutError):
    """A bounded wait on an accelerator job expired."""
