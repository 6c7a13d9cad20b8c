from .transcribe import (  # noqa: F401
    ChunkedTranscription,
    run_chunked_transcription,
    transcribe_file,
)

__all__ = [
    "ChunkedTranscription",
    "run_chunked_transcription",
    "transcribe_file",
]
