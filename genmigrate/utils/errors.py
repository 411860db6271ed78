# genmigrate/utils/errors.py
class GenesisMigrationError(RuntimeError):
    """
    Root of every expected migration failure.
    The CLI prints these without a traceback and exits non-zero.
    """


class MalformedDocument(GenesisMigrationError):
    """Input is unparseable or structurally invalid."""


class MigrationError(MalformedDocument):
    """A registered transform raised or returned something that is not a mapping."""


class MissingField(GenesisMigrationError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"exported json does not contain {path} field")


class UnknownMigration(GenesisMigrationError):
    def __init__(self, label: str):
        self.label = label
        super().__init__(f"unknown migration function for version: {label}")


class InvalidTimestamp(GenesisMigrationError):
    def __init__(self, text: str, reason: str = ""):
        self.text = text
        detail = f": {reason}" if reason else ""
        super().__init__(f"failed to unmarshal genesis time {text!r}{detail}")


class KeyfileError(GenesisMigrationError):
    """Replacement keyfile is unreadable or malformed."""


class SerializationError(GenesisMigrationError):
    """The migrated document cannot be encoded."""
