from validator_module.models import (
    AnalysisReport,
    AnalysisStatus,
    CheckTarget,
    ContextOutcome,
    DetailRecord,
    Finding,
    PageTarget,
    Summary,
)
from validator_module.errors import (
    ValidatorModuleError,
    SnapshotCaptureError,
    CheckerError,
    StorageWriteError,
    ModuleAnalysisError,
    PageAnalysisError,
    EventRegistrationError,
    EventPayloadError,
)
from validator_module.events import EventBus, JourneyEvent, ModuleEvent, HtmlValidatorEvent
from validator_module.snapshots import ContextSnapshotStore
from validator_module.reducer import reduce
from validator_module.checker import Checker, NuHtmlChecker
from validator_module.storage import StorageSink, MemoryStorage
from validator_module.reporting import ResultLogger
from validator_module.engine import HtmlValidatorModule
