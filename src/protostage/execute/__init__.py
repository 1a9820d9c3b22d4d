"""protoc invocation building and execution."""

from .builder import ProtocInvocation, ProtocInvocationBuilder
from .executor import ProtocExecutor

__all__ = ["ProtocExecutor", "ProtocInvocation", "ProtocInvocationBuilder"]
