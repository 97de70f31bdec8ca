from .pipeline import (
    ChatInputError,
    GenerationFailed,
    MindSafePipeline,
    PipelineOutcome,
    PipelineState,
    validate_message,
)
from .repo import ChatRepo, StorageError
from .service import ChatResult, ChatService
from .dump_core import build_history_messages, run_dump_core

__all__ = [
    "ChatInputError",
    "GenerationFailed",
    "MindSafePipeline",
    "PipelineOutcome",
    "PipelineState",
    "validate_message",
    "ChatRepo",
    "StorageError",
    "ChatResult",
    "ChatService",
    "build_history_messages",
    "run_dump_core",
]
