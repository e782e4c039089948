import enum


class DeploymentEnvironment(enum.Enum):
    Production = "production"
    Staging = "staging"
    Development = "development"
    Test = "test"
    Local = "local"
