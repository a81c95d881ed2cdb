from enum import Enum

import msgspec

from cubic.models.envelope import ClientError, Envelope


class OperationStatus(str, Enum):
    OK = "ok"
    BACKEND_ERROR = "backend_error"  # well-formed reply with success: false
    INVALID_RESPONSE = "invalid_response"  # reply broke the envelope schema
    UNEXPECTED_PAYLOAD = "unexpected_payload"  # valid reply, wrong variant
    TRANSPORT_ERROR = "transport_error"  # call never completed


class OperationResult(msgspec.Struct, frozen=True):
    """
    Outcome of a store action that talked to the backend.

    Failures are reported through this record instead of being raised;
    presenting them is up to the caller.
    """

    status: OperationStatus
    envelope: Envelope | None = None
    error: ClientError | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is OperationStatus.OK

    def describe(self) -> str:
        if self.ok:
            return "ok"
        if self.error is not None:
            return self.error.describe()
        return self.detail or self.status.value
