"""
Exception types for StudyMap

Backend modules raise these; the controllers catch them at the call site
and turn them into user-visible messages.
"""


class StudyMapError(Exception):
    """Base class for all StudyMap failures"""


class InvalidRequest(StudyMapError, ValueError):
    """A user-supplied value failed validation before any network or storage call"""


class NotSignedIn(StudyMapError):
    """The syllabus repository was accessed without a signed-in user"""


class SyllabusNotFound(StudyMapError, KeyError):
    """No syllabus with the given id exists in the user's collection"""

    def __init__(self, syllabus_id: str):
        super().__init__(syllabus_id)
        self.syllabus_id = syllabus_id

    def __str__(self):
        return f"Syllabus not found: {self.syllabus_id}"


class StorageQuotaExceeded(StudyMapError):
    """The key-value store rejected a write because it is full"""


class GenerationError(StudyMapError):
    """The content generation service failed"""

    retryable = False


class ServiceUnavailable(GenerationError):
    """The generation service is overloaded or temporarily down"""

    retryable = True


class MalformedResponse(GenerationError):
    """The generation service answered with content that does not match the expected shape"""

    retryable = True
