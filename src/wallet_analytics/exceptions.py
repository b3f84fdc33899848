"""Exception hierarchy for the wallet analytics pipeline."""


class WalletAnalyticsError(Exception):
    """Base exception for all pipeline errors."""


class PreconditionError(WalletAnalyticsError):
    """Input or configuration rejected before any network call is made."""


class InvalidAddressError(PreconditionError):
    """Wallet address is not a 0x-prefixed 40 hex digit string."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"Invalid wallet address: {address!r}")


class UnsupportedChainError(PreconditionError):
    """Chain key is not present in the chain registry."""

    def __init__(self, chain: str) -> None:
        self.chain = chain
        super().__init__(f"Unsupported chain: {chain}")


class MissingCredentialError(PreconditionError):
    """A required provider API key is not configured."""

    def __init__(self, variable: str) -> None:
        self.variable = variable
        super().__init__(f"Missing provider credential: set the {variable} environment variable")


class ProviderRequestError(WalletAnalyticsError):
    """
    A provider call failed after exhausting its retries.

    Parameters
    ----------
    chain : str
        Chain key the call was issued against
    method : str
        JSON-RPC method name
    message : str
        Description of the last failure
    attempts : int
        Number of attempts made

    """

    def __init__(self, chain: str, method: str, message: str, attempts: int = 1) -> None:
        self.chain = chain
        self.method = method
        self.attempts = attempts
        super().__init__(f"{method} on {chain} failed after {attempts} attempt(s): {message}")


class WalletDataUnavailableError(WalletAnalyticsError):
    """Balances or transfers could not be fetched for a single-chain report."""

    HINT = "Verify the provider configuration (ALCHEMY_API_KEY) and that the chain endpoint is reachable."

    def __init__(self, chain: str, cause: Exception) -> None:
        self.chain = chain
        self.cause = cause
        super().__init__(f"Wallet data unavailable on {chain}: {cause}. {self.HINT}")
