from typing import List, Optional


class ValidatorModuleError(Exception):
    """Base html-validator module exception."""
    pass


class SnapshotCaptureError(ValidatorModuleError):
    """Raised when the content of a rendering context could not be captured."""

    def __init__(self, context_name: str, cause: Optional[BaseException] = None):
        self.context_name = context_name
        self.cause = cause
        super().__init__(f"Snapshot capture failed for context '{context_name}': {cause}")


class CheckerError(ValidatorModuleError):
    """Raised when the external markup checker fails for one target."""
    pass


class StorageWriteError(ValidatorModuleError):
    """Raised when a summary or detail row could not be persisted."""

    def __init__(self, store_name: str, cause: Optional[BaseException] = None):
        self.store_name = store_name
        self.cause = cause
        super().__init__(f"Write to store '{store_name}' failed: {cause}")


class ModuleAnalysisError(ValidatorModuleError):
    """
    Per-context analysis failure.
    Carries the context name and the underlying checker/storage/capture error.
    """

    def __init__(self, context_name: str, cause: Optional[BaseException] = None):
        self.context_name = context_name
        self.cause = cause
        super().__init__(f"Analysis failed for context '{context_name}': {cause}")


class PageAnalysisError(ValidatorModuleError):
    """Aggregate of every failed context of one analyse_page call."""

    def __init__(self, url: str, failures: List[ModuleAnalysisError]):
        self.url = url
        self.failures = failures
        names = ", ".join(f.context_name for f in failures)
        super().__init__(f"{len(failures)} context(s) failed for {url}: {names}")


class EventRegistrationError(ValidatorModuleError):
    """Raised when subscribing to an unknown event or with a non-callable handler."""
    pass


class EventPayloadError(ValidatorModuleError):
    """Raised when an emitted payload misses keys required by its event."""
    pass
