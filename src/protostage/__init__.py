"""protostage - proto source staging and protoc invocation for build pipelines."""

__version__ = "0.3.0"

from protostage.execute import ProtocExecutor, ProtocInvocation, ProtocInvocationBuilder  # noqa: E402
from protostage.sources import ArchiveExtractor, ArchiveListing, resolve  # noqa: E402

__all__ = [
    "__version__",
    "ArchiveExtractor",
    "ArchiveListing",
    "ProtocExecutor",
    "ProtocInvocation",
    "ProtocInvocationBuilder",
    "resolve",
]
