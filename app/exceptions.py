class ConfigurationError(ValueError):
    """A project trigger cannot be set up with the configuration it was given."""

    def __init__(self, message: str, project: str | None = None):
        super().__init__(message)
        self.project = project


class RepositoryError(RuntimeError):
    """The hosting platform refused or failed a repository level operation."""
