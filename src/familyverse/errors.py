"""Exception hierarchy for the widget synchronizer.

The resolver itself never raises; these exceptions belong to the adapters
around it (config files, preference files, the companion bridge).
"""


class FamilyVerseError(Exception):
    """Base exception for all widget synchronizer errors.

    Everything raised on purpose by this package inherits from this class so
    the CLI can report it at the command boundary.
    """

    pass


class ConfigError(FamilyVerseError):
    """Base exception for configuration errors."""

    pass


class ConfigFileError(ConfigError):
    """Exception raised for YAML config file issues.

    Raised when:
    - Config file exists but cannot be read
    - Config file contains malformed YAML
    """

    pass


class StoreLoadError(FamilyVerseError):
    """Exception raised when a preferences file cannot be read or parsed."""

    pass


class UnknownMethodError(FamilyVerseError):
    """Exception raised when the companion app calls a method the bridge lacks."""

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Method not implemented: {method}")
