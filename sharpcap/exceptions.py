"""
Custom exceptions for the sharpcap decision engine.

Bad factor input is not an exception (it yields a neutral signal) and a
policy rejection is not an exception either (it yields a PassRecord).
Everything below is what remains.

Usage:
    from sharpcap.exceptions import DataUnavailableError, UpstreamFailureError

    try:
        bundle = provider.fetch(game)
    except DataUnavailableError as e:
        bundle = league_average_bundle(error=str(e))
"""


class SharpCapError(Exception):
    """
    Base exception for all sharpcap errors.

    All custom exceptions inherit from this, allowing:
        except SharpCapError:
            # Catch any engine error
    """
    pass


# =============================================================================
# DATA ERRORS
# =============================================================================

class DataUnavailableError(SharpCapError):
    """
    Stats or injury data could not be fetched.

    Raised when:
    - A stats provider cannot reach its source
    - A provider returns an empty or malformed payload
    - An injury report is unavailable for the slate
    """

    def __init__(self, source: str, message: str = None, original_error: Exception = None):
        self.source = source
        self.original_error = original_error
        msg = f"Data unavailable from {source}"
        if message:
            msg += f": {message}"
        if original_error:
            msg += f" (caused by: {type(original_error).__name__}: {original_error})"
        super().__init__(msg)


class InvalidGameError(SharpCapError):
    """
    A slate entry cannot be turned into a Game.

    Raised when:
    - Required fields (id, teams, start time) are missing
    - The sport is not supported
    - Odds payload is structurally invalid
    """

    def __init__(self, game_id: str, message: str):
        self.game_id = game_id
        super().__init__(f"Invalid game {game_id or '<unknown>'}: {message}")


# =============================================================================
# PROVIDER ERRORS
# =============================================================================

class UpstreamFailureError(SharpCapError):
    """
    An optional external factor provider failed.

    Raised when:
    - The research provider errors or times out
    - The provider returns a factor that cannot be used

    The batch treats this as "factor absent" and never propagates it.
    """

    def __init__(self, provider: str, message: str = None, original_error: Exception = None):
        self.provider = provider
        self.original_error = original_error
        msg = f"Upstream provider {provider} failed"
        if message:
            msg += f": {message}"
        if original_error:
            msg += f" (caused by: {type(original_error).__name__}: {original_error})"
        super().__init__(msg)


# =============================================================================
# ANALYSIS ERRORS
# =============================================================================

class ComputationError(SharpCapError):
    """
    A numeric step of the per-game pipeline failed.

    Raised when:
    - A shrinkage constant is not positive
    - An aggregate is not finite
    - A score prediction cannot be formed
    """

    def __init__(self, stage: str, message: str):
        self.stage = stage
        super().__init__(f"Computation failed at {stage}: {message}")


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(SharpCapError):
    """
    Configuration or setup error.

    Raised when:
    - An unknown policy preset is requested
    - Tier tables are not sorted or empty
    - An invalid configuration value is supplied
    """

    def __init__(self, setting: str, message: str):
        self.setting = setting
        super().__init__(f"Configuration error ({setting}): {message}")
