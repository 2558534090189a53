"""Error hierarchy for moxen.

Every error raised by moxen derives from MoxenError. Each subsystem has
its own base class so callers can handle a whole family at once, while
the CLI only needs to catch MoxenError to report a single error line.
"""


class MoxenError(Exception):
    """Base exception for all moxen errors."""


# =============================================================================
# Structural validation
# =============================================================================


class StructureError(MoxenError):
    """Base exception for bundle structure problems."""


class MissingMarkerFileError(StructureError):
    """Raised when a bundle root has no .toc marker file."""

    def __init__(self, directory: str) -> None:
        self.directory = directory
        super().__init__(f"missing required toc file in {directory}")


class InvalidFileExtensionError(StructureError):
    """Raised when a bundle contains a file that must not be distributed."""

    def __init__(self, extension: str, path: str) -> None:
        self.extension = extension
        self.path = path
        super().__init__(f"invalid file extension found - {extension} ({path})")


class IgnorePatternError(StructureError):
    """Raised when an ignore glob from the manifest is malformed."""


# =============================================================================
# Integrity
# =============================================================================


class IntegrityError(MoxenError):
    """Base exception for content integrity failures."""


class ChecksumError(IntegrityError):
    """Raised when package bytes do not hash to the expected digest."""

    def __init__(self, actual: str, expected: str) -> None:
        self.actual = actual
        self.expected = expected
        super().__init__(f"checksum failure: {actual} doesn't match expected {expected}")


# =============================================================================
# Local state
# =============================================================================


class StateError(MoxenError):
    """Base exception for invalid local state."""


class ProjectAlreadyExistsError(StateError):
    """Raised when a bundle directory already exists."""


class CredentialsExistError(StateError):
    """Raised when generating a keypair while credentials are stored."""


class MissingCredentialsError(StateError):
    """Raised when an operation needs credentials that are not stored."""


# =============================================================================
# Registry protocol
# =============================================================================


class RegistryError(MoxenError):
    """Base exception for registry communication errors."""


class ProjectNotFoundError(RegistryError):
    """Raised when the registry has no package with the requested name."""

    def __init__(self, message: str) -> None:
        super().__init__(f"project not found in registry - {message}")


class ProjectConflictError(RegistryError):
    """Raised when the registry already holds the published package."""


class InvalidApiKeyError(RegistryError):
    """Raised when the registry rejects the API key."""


class RegistryApiError(RegistryError):
    """Raised for any other registry failure, carrying the server message."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(f"moxen registry api error: {message}")


class RegistryConnectionError(RegistryError):
    """Raised when the registry cannot be reached."""


# =============================================================================
# Authentication
# =============================================================================


class AuthError(MoxenError):
    """Base exception for authentication problems."""


class AuthenticationError(AuthError):
    """Raised when the registry rejects a recovery attempt."""

    def __init__(self, message: str) -> None:
        super().__init__(f"authentication error: {message}")


class InvalidUsernameError(AuthError):
    """Raised when a chosen username is not acceptable."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"invalid username: {reason}")


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(MoxenError):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""
