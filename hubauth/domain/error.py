"""Domain layer errors."""


class DomainError(Exception):
    """Base domain error."""

    pass


class InvalidInputError(DomainError):
    """Mandatory parameters are missing or unusable.

    Signals a programming or configuration error, never a user mistake.
    """

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class AlreadyExistsError(DomainError):
    """Raised by a store when a unique binding already exists.

    The reconciler recovers from this by re-reading the binding.
    """

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} already exists: {identifier}")


class EmailTakenError(DomainError):
    """Raised by a store when another account already owns an email address."""

    def __init__(self, email_address: str):
        self.email_address = email_address
        super().__init__(f"Account email already in use: {email_address}")


class ReconciliationError(DomainError):
    """Base for errors that terminate a login attempt.

    The message is meant to be shown to the user as is.
    """

    code: str = "login_failed"


class MalformedTokenError(ReconciliationError):
    """Remember-me cookie does not have exactly four fields."""

    code = "malformed_token"

    def __init__(self, field_count: int):
        self.field_count = field_count
        super().__init__("badly formatted remember_me cookie")


class IdentityConflictError(ReconciliationError):
    """External identity is already bound to a different account."""

    code = "identity_conflict"

    def __init__(self, strategy: str):
        self.strategy = strategy
        super().__init__(
            f"Your {strategy} account is already attached to another account. "
            f"First sign into that account and unlink {strategy} in account "
            "settings if you want to instead associate it with this account."
        )


class EmailAlreadyRegisteredError(ReconciliationError):
    """An account with one of the asserted emails already exists."""

    code = "email_registered"

    def __init__(self, email_address: str, strategy: str):
        self.email_address = email_address
        self.strategy = strategy
        super().__init__(
            f"There is already an account with email address {email_address}; "
            f"please sign in using that email account, then link {strategy} "
            "to it in account settings."
        )


class BannedError(ReconciliationError):
    """The resolved account is banned."""

    code = "banned"

    def __init__(
        self, account_id: str, email_address: str | None, help_email: str
    ):
        self.account_id = account_id
        self.email_address = email_address
        self.help_email = help_email
        super().__init__(
            f"User (account_id={account_id}, email_address={email_address}) "
            f"is BANNED. If this is a mistake, please contact {help_email}."
        )
