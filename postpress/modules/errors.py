"""Build error raised for any condition that must abort a build."""


class BuildError(ValueError):
    """A fatal build failure tied to one document and, when known, one field.

    The build is fail-fast: ordering, pagination and cross-links all depend on
    every document succeeding, so nothing catches this below the CLI.
    """

    def __init__(self, document, message, field=None):
        self.document = document
        self.field = field
        self.message = message
        super().__init__(str(self))

    def __str__(self):
        if self.field:
            return f"{self.document}: {self.field}: {self.message}"
        return f"{self.document}: {self.message}"
