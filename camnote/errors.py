"""
Pipeline error taxonomy.

Client-caused failures map to 400, everything else to 500. Messages on
ValidationError and UnsupportedImageFormat are safe to show the caller;
engine and library messages are only logged.
"""


class PipelineError(Exception):
    status_code = 500
    message = "Processing failed"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class ValidationError(PipelineError):
    status_code = 400
    message = "Invalid request"


class UnsupportedImageFormat(PipelineError):
    status_code = 400
    message = "Unsupported image format"


class ExtractionFailed(PipelineError):
    message = "Text extraction failed"


class CompositionError(PipelineError):
    message = "Document composition failed"
