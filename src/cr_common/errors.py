"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Admin auth
  3xxx: Round
  4xxx: Wager / contribution
  6xxx: Swap normalization
  7xxx: External collaborators (oracle, payout rail)
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Admin auth ---

class AdminAuthError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired admin token", 401)


# --- 3xxx: Round ---

class RoundNotFoundError(AppError):
    def __init__(self, round_id: str) -> None:
        super().__init__(3001, f"Round not found: {round_id}", 404)


class RoundNotOpenError(AppError):
    """The round has locked or settled; the wager is rejected outright."""

    def __init__(self, round_id: str, status: str | None = None) -> None:
        detail = f" (status={status})" if status else ""
        super().__init__(3002, f"Round is not open: {round_id}{detail}", 422)


class InvalidSymbolError(AppError):
    def __init__(self, symbol: str) -> None:
        super().__init__(3003, f"Unsupported symbol: {symbol}", 422)


class NoOpenRoundError(AppError):
    def __init__(self, symbol: str) -> None:
        super().__init__(3004, f"No open round found for {symbol}", 404)


class DuplicateRoundWindowError(AppError):
    """A round already exists for (symbol, start_time). Benign for the scheduler."""

    def __init__(self, symbol: str, start_time: str) -> None:
        super().__init__(3005, f"Round already exists for {symbol} at {start_time}", 409)


# --- 4xxx: Wager ---

class InvalidContributionError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Invalid contribution: {detail}", 422)


class UnsupportedAssetError(AppError):
    def __init__(self, asset: str) -> None:
        super().__init__(4002, f"Unsupported asset: {asset}", 422)


# --- 6xxx: Swap ---

class SwapFailedError(AppError):
    def __init__(self, asset: str, detail: str) -> None:
        super().__init__(6001, f"Swap of {asset} to quote currency failed: {detail}", 502)


# --- 7xxx: External collaborators ---

class ObservationUnavailableError(AppError):
    """No price data covers the window. Settlement is retried on the next tick."""

    def __init__(self, symbol: str, detail: str) -> None:
        super().__init__(7001, f"Price observation unavailable for {symbol}: {detail}", 503)


class TransferFailedError(AppError):
    """Payout transfer failed. Retried on the next tick."""

    def __init__(self, recipient_key: str, detail: str) -> None:
        super().__init__(7002, f"Transfer to {recipient_key} failed: {detail}", 502)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
