# Application constants


class AppConstants:
    # OTP defaults
    DEFAULT_ALGORITHM = "SHA1"
    DEFAULT_DIGITS = 6
    DEFAULT_PERIOD = 30
    ALLOWED_DIGITS = (6, 8)

    # Labels substituted for missing values on import
    UNKNOWN_ISSUER = "Unknown"
    UNKNOWN_ACCOUNT = "Unknown Account"

    # Countdown colouring thresholds (fraction of the period left)
    PROGRESS_AMPLE_THRESHOLD = 0.66
    PROGRESS_WARNING_THRESHOLD = 0.33

    # TOTP validation
    MAX_ACCOUNT_LENGTH = 64
    MAX_ISSUER_LENGTH = 64

    # Migration export format
    MIGRATION_VERSION = 1
