"""Domain errors raised by the settlement engine and its collaborators."""


class SettleUpError(Exception):
    """Base exception for all SettleUp domain errors."""

    pass


class DataIntegrityError(SettleUpError):
    """Raised when ledger facts cannot form a valid balance snapshot.

    Either a fact references a member outside the group roster, or the
    aggregated balances do not sum to zero within tolerance.
    """

    def __init__(self, message: str, group_id: int | None = None):
        self.group_id = group_id
        super().__init__(message)
