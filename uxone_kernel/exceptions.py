"""
Typed exception hierarchy for the UXOne workflow kernel.

Every error has a typed class (catch by type, not by message), a ``code``
class attribute (machine-readable, API-safe) and structured attributes
carrying the data needed to report it.

    UXOneError (base)
    |
    +-- ValidationError
    |   +-- InvalidDecisionError
    |   +-- MissingFieldError
    |   +-- UnknownDepartmentError
    |   +-- UnknownRoleError
    |   +-- InvalidCommentKindError
    |   +-- InvalidIdentifierError
    |
    +-- AuthorizationError
    |   +-- DepartmentAuthorizationError
    |
    +-- WorkflowError
    |   +-- WorkflowNotFoundError
    |   +-- WorkflowFinalizedError
    |
    +-- SequenceError
    |   +-- SequenceExhaustedError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |   +-- ConcurrentModificationError
    |
    +-- NotificationError
    |   +-- NotificationDeliveryError
    |
    +-- ConfigurationError

Category        | Code                        | When Raised
----------------|-----------------------------|---------------------------------------
Validation      | INVALID_DECISION            | Action is not an approve/reject synonym
                | MISSING_FIELD               | Required inbound field absent
                | UNKNOWN_DEPARTMENT          | Department code not in the closed set
                | UNKNOWN_ROLE                | Role name not in the closed set
                | INVALID_COMMENT_KIND        | Comment kind not comment/update
                | INVALID_IDENTIFIER          | Identifier does not match its family
----------------|-----------------------------|---------------------------------------
Authorization   | DEPARTMENT_NOT_AUTHORIZED   | Actor may not decide for department
----------------|-----------------------------|---------------------------------------
Workflow        | WORKFLOW_NOT_FOUND          | Aggregate id does not exist
                | WORKFLOW_FINALIZED          | Aggregate already released
----------------|-----------------------------|---------------------------------------
Sequence        | SEQUENCE_EXHAUSTED          | Bounded identifier retries all failed
----------------|-----------------------------|---------------------------------------
Concurrency     | OPTIMISTIC_LOCK_CONFLICT    | Version changed between read and write
                | CONCURRENT_MODIFICATION     | Retries exhausted, caller must resubmit
----------------|-----------------------------|---------------------------------------
Notification    | NOTIFICATION_DELIVERY_FAILED| A sink could not deliver (never escapes
                |                             | the dispatcher)
----------------|-----------------------------|---------------------------------------
Configuration   | CONFIGURATION_ERROR         | YAML configuration failed validation

Categories let callers handle errors as groups:
    - ValidationError -> 400-style "fix the request"
    - AuthorizationError -> 403-style
    - WorkflowFinalizedError -> 409-style
    - ConcurrencyError -> retry / resubmit
"""


class UXOneError(Exception):
    """
    Base exception for all UXOne workflow errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "UXONE_ERROR"


# Validation exceptions


class ValidationError(UXOneError):
    """Base exception for malformed input. Raised before any mutation."""

    code: str = "VALIDATION_ERROR"


class InvalidDecisionError(ValidationError):
    """Decision action is not one of the approve/reject synonyms."""

    code: str = "INVALID_DECISION"

    def __init__(self, action: object):
        self.action = action
        super().__init__(
            f"Invalid decision {action!r}: must be approved or rejected"
        )


class MissingFieldError(ValidationError):
    """A required field is missing from an inbound payload."""

    code: str = "MISSING_FIELD"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Missing required field: {field_name}")


class UnknownDepartmentError(ValidationError):
    """Department code is not part of the closed department set."""

    code: str = "UNKNOWN_DEPARTMENT"

    def __init__(self, department: object):
        self.department = department
        super().__init__(f"Unknown department: {department!r}")


class UnknownRoleError(ValidationError):
    """Role name is not part of the closed role set."""

    code: str = "UNKNOWN_ROLE"

    def __init__(self, role: object):
        self.role = role
        super().__init__(f"Unknown role: {role!r}")


class InvalidCommentKindError(ValidationError):
    """Comment kind is neither 'comment' nor 'update'."""

    code: str = "INVALID_COMMENT_KIND"

    def __init__(self, kind: object):
        self.kind = kind
        super().__init__(f"Invalid comment type: {kind!r}")


class InvalidIdentifierError(ValidationError):
    """Identifier does not match the format of its family."""

    code: str = "INVALID_IDENTIFIER"

    def __init__(self, identifier: str, prefix: str):
        self.identifier = identifier
        self.prefix = prefix
        super().__init__(
            f"Identifier {identifier!r} is not a valid {prefix} identifier"
        )


# Authorization exceptions


class AuthorizationError(UXOneError):
    """Base exception for authority failures. Raised before any mutation."""

    code: str = "AUTHORIZATION_ERROR"


class DepartmentAuthorizationError(AuthorizationError):
    """
    Actor may not record a decision for the target department.

    Department heads decide only for their own department unless they hold
    an override role.
    """

    code: str = "DEPARTMENT_NOT_AUTHORIZED"

    def __init__(self, actor_id: str, actor_department: str, department: str):
        self.actor_id = actor_id
        self.actor_department = actor_department
        self.department = department
        super().__init__(
            f"Actor {actor_id} ({actor_department}) is not authorized "
            f"to decide for department {department}"
        )


# Workflow exceptions


class WorkflowError(UXOneError):
    """Base exception for workflow aggregate errors."""

    code: str = "WORKFLOW_ERROR"


class WorkflowNotFoundError(WorkflowError):
    """Workflow aggregate with given ID was not found."""

    code: str = "WORKFLOW_NOT_FOUND"

    def __init__(self, aggregate_id: str):
        self.aggregate_id = aggregate_id
        super().__init__(f"Workflow aggregate not found: {aggregate_id}")


class WorkflowFinalizedError(WorkflowError):
    """
    Aggregate is released and can no longer be modified.

    Once every required department has approved, the aggregate is locked
    against further approve/reject submissions.
    """

    code: str = "WORKFLOW_FINALIZED"

    def __init__(self, aggregate_id: str):
        self.aggregate_id = aggregate_id
        super().__init__(
            f"Workflow aggregate {aggregate_id} is already finalized, "
            "cannot modify"
        )


# Sequence exceptions


class SequenceError(UXOneError):
    """Base exception for identifier generation errors."""

    code: str = "SEQUENCE_ERROR"


class SequenceExhaustedError(SequenceError):
    """
    Identifier generation failed after the bounded number of attempts.

    The caller must retry the whole higher-level operation; a duplicate or
    malformed identifier is never returned instead.
    """

    code: str = "SEQUENCE_EXHAUSTED"

    def __init__(self, prefix: str, bucket_key: str, attempts: int):
        self.prefix = prefix
        self.bucket_key = bucket_key
        self.attempts = attempts
        super().__init__(
            f"Could not allocate a unique {prefix} identifier in bucket "
            f"{bucket_key} after {attempts} attempts"
        )


# Concurrency exceptions


class ConcurrencyError(UXOneError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str, expected_version: int):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id} "
            f"(expected version {expected_version}): "
            "entity was modified by another transaction"
        )


class ConcurrentModificationError(ConcurrencyError):
    """
    Read-recompute-write retries were exhausted.

    Transient: the caller should resubmit the decision.
    """

    code: str = "CONCURRENT_MODIFICATION"

    def __init__(self, aggregate_id: str, attempts: int):
        self.aggregate_id = aggregate_id
        self.attempts = attempts
        super().__init__(
            f"Workflow aggregate {aggregate_id} kept changing during "
            f"{attempts} attempts; please resubmit"
        )


# Notification exceptions


class NotificationError(UXOneError):
    """Base exception for notification errors."""

    code: str = "NOTIFICATION_ERROR"


class NotificationDeliveryError(NotificationError):
    """A notification sink failed to deliver a notification."""

    code: str = "NOTIFICATION_DELIVERY_FAILED"

    def __init__(self, sink: str, recipient_user_id: str, reason: str):
        self.sink = sink
        self.recipient_user_id = recipient_user_id
        self.reason = reason
        super().__init__(
            f"Sink {sink} failed to deliver notification to "
            f"{recipient_user_id}: {reason}"
        )


# Configuration exceptions


class ConfigurationError(UXOneError):
    """Configuration failed validation."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, field_path: str, reason: str):
        self.field_path = field_path
        self.reason = reason
        super().__init__(f"Invalid configuration at {field_path}: {reason}")
