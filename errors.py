"""
Error taxonomy for the analysis service.

Every failure carries the message and HTTP status it is reported with, so the
request boundary can turn it into an `{"error": ...}` response without
inspecting the type.
"""


class AnalysisError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InputValidationError(AnalysisError):
    status_code = 400


class UpstreamRateLimited(AnalysisError):
    status_code = 429

    def __init__(self, message: str = "Rate limit exceeded. Please try again shortly."):
        super().__init__(message)


class UpstreamBillingExhausted(AnalysisError):
    status_code = 402

    def __init__(self, message: str = "AI credits exhausted. Please add credits."):
        super().__init__(message)


class UpstreamGenericFailure(AnalysisError):
    def __init__(self, status_code: int, message: str = "Analysis failed"):
        super().__init__(message, status_code=status_code)


class GatewayUnavailable(AnalysisError):
    status_code = 502


class GatewayTimeout(AnalysisError):
    status_code = 504


class NormalizationError(AnalysisError):
    status_code = 500


class EmptyResponse(NormalizationError):
    def __init__(self, message: str = "No content in response"):
        super().__init__(message)


class NoJsonFound(NormalizationError):
    def __init__(self, message: str = "No valid JSON found in response"):
        super().__init__(message)


class MalformedJson(NormalizationError):
    pass


class InvalidAnalysis(NormalizationError):
    pass
