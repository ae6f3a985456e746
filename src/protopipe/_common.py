class TimeoutError(Exception):
    pass


class UnsupportedPlatformError(RuntimeError):
    pass


class PipeCreationError(OSError):
    # Raised by `prepare` when the temp directory, a FIFO, or the script
    # could not be created. The original error is the `__cause__`.
    pass


class CleanupError(OSError):
    def __init__(self, failures: list):
        # `failures` is a list of `(path, exception)` pairs.
        self.failures = failures
        paths = ', '.join(repr(p) for p, _ in failures)
        super().__init__(f"failed to remove {paths}")
