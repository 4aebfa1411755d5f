"""Database-backed stores for progress records."""


class RecordNotFound(LookupError):
    """Raised when a repository is asked to mutate a record that does not exist."""


class ProfileAlreadyBound(ValueError):
    """Raised when a profile id is bound to a different child."""

    def __init__(self, profile_id: str, child_id: str) -> None:
        super().__init__(f"Profile '{profile_id}' is already bound to child '{child_id}'.")
        self.profile_id = profile_id
        self.child_id = child_id


__all__ = ["ProfileAlreadyBound", "RecordNotFound"]
