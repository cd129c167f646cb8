from __future__ import annotations

_SNIPPET_MAX_CHARS = 100


class AnalyzerError(RuntimeError):
    """Base for every failure that crosses the extraction/analysis boundary."""

    code = "analyzer_error"
    user_visible = True

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code


# Extraction


class UnsupportedFormat(AnalyzerError):
    code = "unsupported_format"

    def __init__(self, extension: str):
        label = f".{extension}" if extension else "(no extension)"
        super().__init__(f"Unsupported file type: {label}. Supported types: .txt, .docx, .pdf")
        self.extension = extension


class EmptyExtractedText(AnalyzerError):
    code = "empty_extracted_text"

    def __init__(self, message: str = "Extracted text is empty. The file might be a scanned image."):
        super().__init__(message)


class ExtractionFailed(AnalyzerError):
    code = "extraction_failed"

    def __init__(self, reason: str):
        super().__init__(f"Failed to extract text. File might be corrupted: {reason}")
        self.reason = reason


class FileTooLarge(AnalyzerError):
    code = "file_too_large"

    def __init__(self, max_bytes: int):
        super().__init__(f"File too large. Maximum allowed size is {max_bytes // (1024 * 1024)} MB.")
        self.max_bytes = max_bytes


# Orchestration and normalization


class MissingInput(AnalyzerError):
    code = "missing_input"

    _LABELS = {
        "jd_text": "Job Description text",
        "resume_text": "Resume text",
    }

    def __init__(self, which: str):
        super().__init__(f"{self._LABELS.get(which, which)} is missing or empty.")
        self.which = which


class Cancelled(AnalyzerError):
    code = "cancelled"
    user_visible = False

    def __init__(self, message: str = "Request cancelled"):
        super().__init__(message)


class TransportError(AnalyzerError):
    code = "transport_error"

    def __init__(self, status_code: int | None, raw_body: str):
        if status_code is None:
            message = f"Network error: {raw_body}"
        else:
            message = f"Server error: {status_code} - {raw_body}"
        super().__init__(message)
        self.status_code = status_code
        self.raw_body = raw_body


class EndpointMisconfigured(AnalyzerError):
    code = "endpoint_misconfigured"

    def __init__(self, status_code: int, raw_body: str):
        super().__init__(
            "Configuration Error: The analysis webhook is rejecting POST requests. "
            "Check the workflow settings and make sure the Webhook node method is set to 'POST'."
        )
        self.status_code = status_code
        self.raw_body = raw_body


class EmptyResponse(AnalyzerError):
    code = "empty_response"

    def __init__(self):
        super().__init__(
            "Analysis failed: Server returned an empty response. "
            "Ensure the workflow ends with a response (e.g., Respond to Webhook node)."
        )


class InvalidJson(AnalyzerError):
    code = "invalid_json"

    def __init__(self, raw_body: str):
        snippet = raw_body[:_SNIPPET_MAX_CHARS]
        super().__init__(f"Server returned invalid JSON. Response: {snippet}...")
        self.snippet = snippet
