"""Domain exceptions raised by the configuration store and the scoring engine."""


class RiskEngineError(Exception):
    """Base exception for the risk and matching engine"""

    pass


class DuplicateIdError(RiskEngineError):
    """A configuration with the same slug id already exists"""

    def __init__(self, config_id: str):
        super().__init__(f"Configuration id '{config_id}' already exists")
        self.config_id = config_id


class NotFoundError(RiskEngineError):
    """No configuration with the requested id"""

    def __init__(self, config_id: str):
        super().__init__(f"Configuration '{config_id}' not found")
        self.config_id = config_id


class ProtectedDefaultError(RiskEngineError):
    """The default configuration of an instrument type cannot be deleted"""

    def __init__(self, config_id: str):
        super().__init__(f"Configuration '{config_id}' is the default and cannot be deleted")
        self.config_id = config_id


class VersionConflictError(RiskEngineError):
    """Update carried a stale version number"""

    def __init__(self, config_id: str, expected: int, actual: int):
        super().__init__(
            f"Configuration '{config_id}' is at version {actual}, update expected version {expected}"
        )
        self.config_id = config_id
        self.expected = expected
        self.actual = actual


class ConfigurationValidationError(RiskEngineError):
    """Field values would leave the configuration inconsistent"""

    pass


class InactiveConfigurationError(RiskEngineError):
    """Assessment requested against a deactivated configuration"""

    def __init__(self, config_id: str):
        super().__init__(f"Configuration '{config_id}' is inactive")
        self.config_id = config_id


class UnparseableThresholdError(RiskEngineError):
    """Threshold text is not a recognisable range expression"""

    def __init__(self, text: str):
        super().__init__(f"Cannot parse threshold '{text}'")
        self.text = text


class NoWeightError(RiskEngineError):
    """Category weights sum to zero, so no composite score exists"""

    pass


class ScoreOutOfRangeError(RiskEngineError):
    """A category score handed to the composite engine is outside 0-100"""

    def __init__(self, category: str, value: float):
        super().__init__(f"Score {value:g} for category '{category}' is outside 0-100")
        self.category = category
        self.value = value
