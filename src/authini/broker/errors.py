"""
Broker error taxonomy.

Every failure the broker surfaces to a caller is a `BrokerException` carrying the HTTP
status it maps to and a human-readable message. Messages are prefixed with a stable
identifier so that log lines and client reports can be correlated.
"""


class BrokerException(Exception):
    """Base class for failures surfaced directly to the caller."""

    status: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BrokerException):
    """Malformed or missing input."""

    status = 400

    @staticmethod
    def missing_field(field: str) -> "ValidationError":
        return ValidationError(f"error-validation-1000 Field {field} is required")

    @staticmethod
    def id_mismatch() -> "ValidationError":
        return ValidationError(
            "error-validation-1001 Record id does not match the id in the path"
        )

    @staticmethod
    def invalid_id(field: str, value: str) -> "ValidationError":
        return ValidationError(
            f"error-validation-1002 Field {field} must be an integer between 1 and 2147483647, got {value!r}"
        )

    @staticmethod
    def too_long(field: str, max_length: int) -> "ValidationError":
        return ValidationError(
            f"error-validation-1004 Field {field} must be at most {max_length} characters"
        )

    @staticmethod
    def invalid_body(detail: str = "") -> "ValidationError":
        return ValidationError(f"error-validation-1003 Invalid JSON body {detail}".rstrip())


class NotFound(BrokerException):
    """A person, client, link, code or token does not exist."""

    status = 404

    @staticmethod
    def person(person_id: int) -> "NotFound":
        return NotFound(f"error-not-found-1000 Person {person_id} does not exist")

    @staticmethod
    def client(client_id) -> "NotFound":
        return NotFound(f"error-not-found-1001 Client {client_id} does not exist")

    @staticmethod
    def link(person_id: int, client_id: int) -> "NotFound":
        return NotFound(
            f"error-not-found-1002 No link between person {person_id} and client {client_id}"
        )

    @staticmethod
    def code() -> "NotFound":
        # The code itself is a credential and is never echoed back.
        return NotFound("error-not-found-1003 Authorization code not found")

    @staticmethod
    def no_persons() -> "NotFound":
        return NotFound("error-not-found-1004 No persons registered")


class Conflict(BrokerException):
    """A unique key is already taken."""

    status = 409

    @staticmethod
    def client_id_taken(client_id: str) -> "Conflict":
        return Conflict(f"error-conflict-1000 Client {client_id} is already registered")

    @staticmethod
    def link_exists(person_id: int, client_id: int) -> "Conflict":
        return Conflict(
            f"error-conflict-1001 Person {person_id} is already linked to client {client_id}"
        )


class StorageError(BrokerException):
    """Query or connection failure, or stored data that cannot be interpreted."""

    status = 500

    @staticmethod
    def query(operation: str, e: Exception) -> "StorageError":
        return StorageError(
            f"error-storage-1000 {operation} failed: {type(e).__name__}"
        )

    @staticmethod
    def corrupt_profile(person_id: int, client_id: int, detail: str) -> "StorageError":
        return StorageError(
            f"error-storage-1001 Profile for person {person_id} and client {client_id} "
            f"is not a JSON object: {detail}"
        )


class IncompleteClientError(BrokerException):
    """A registered client lacks data an operation needs."""

    status = 500

    @staticmethod
    def missing_callback(client_id: str) -> "IncompleteClientError":
        return IncompleteClientError(
            f"error-client-1000 Client {client_id} has no callback URL"
        )


class UpstreamError(BrokerException):
    """The remote authorization service failed (relay variant only)."""

    status = 502

    @staticmethod
    def unexpected_status(status: int, body: str) -> "UpstreamError":
        return UpstreamError(
            f"error-upstream-1000 Unexpected status {status} from authorization service: {body}"
        )

    @staticmethod
    def malformed_response(detail: str) -> "UpstreamError":
        return UpstreamError(
            f"error-upstream-1001 Malformed response from authorization service: {detail}"
        )

    @staticmethod
    def transport(e: Exception) -> "UpstreamError":
        return UpstreamError(
            f"error-upstream-1002 Authorization service unreachable: {type(e).__name__}"
        )


class ConfigurationError(Exception):
    """Fatal misconfiguration detected while building the application."""
