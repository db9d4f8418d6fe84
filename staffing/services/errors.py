"""
Error taxonomy of the scheduling engine.

Every failure the engine reports is an ``EngineError`` carrying a kind, a
message, the offending entity id and structured details. The HTTP layer maps
``status_code`` onto the response; callers that use the services directly
catch the specific classes.
"""


class EngineError(Exception):
    """Base class for structured scheduling errors."""

    kind = 'engine_error'
    status_code = 500

    def __init__(self, message, entity_id=None, details=None):
        super().__init__(message)
        self.message = message
        self.entity_id = entity_id
        self.details = details or {}

    def to_dict(self):
        return {
            'kind': self.kind,
            'message': self.message,
            'entity_id': self.entity_id,
            'details': self.details,
        }


class ValidationError(EngineError):
    """Malformed input. Fixable by the caller, never retried."""
    kind = 'validation_error'
    status_code = 400


class OutOfBoundsError(ValidationError):
    """Assignment interval falls outside its schedule window."""
    kind = 'out_of_bounds'

    def __init__(self, message, entity_id=None, bounds=None, details=None):
        details = dict(details or {})
        if bounds is not None:
            details['bounds'] = bounds.to_dict()
        super().__init__(message, entity_id, details)


class ConflictError(EngineError):
    """Double-booking, availability conflict or concurrent modification."""
    kind = 'conflict'
    status_code = 409

    def __init__(self, message, entity_id=None, conflicting_ids=None, details=None):
        details = dict(details or {})
        if conflicting_ids is not None:
            details['conflicting_ids'] = list(conflicting_ids)
        super().__init__(message, entity_id, details)

    @property
    def conflicting_ids(self):
        return self.details.get('conflicting_ids', [])


class InvalidStateTransition(EngineError):
    """Illegal status change for a schedule or an assignment."""
    kind = 'invalid_state_transition'
    status_code = 409

    def __init__(self, message, entity_id=None, current=None, allowed=None, details=None):
        details = dict(details or {})
        if current is not None:
            details['current'] = current
        if allowed is not None:
            details['allowed'] = sorted(allowed)
        super().__init__(message, entity_id, details)


class NotFoundError(EngineError):
    kind = 'not_found'
    status_code = 404


class InternalError(EngineError):
    """Unexpected storage or infrastructure failure. Never exposes internals."""
    kind = 'internal_error'
    status_code = 500

    def __init__(self, message='Internal server error', entity_id=None):
        super().__init__(message, entity_id)
