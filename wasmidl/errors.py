"""Errors raised while generating bindings.

Every error is fatal to the current generation run; no partial output is
produced once one of these escapes ``GenerationSession.generate``.
"""


class GenerationError(Exception):
    """Base class for all generator failures."""


class UnknownType(GenerationError, LookupError):
    def __init__(self, name: str):
        super().__init__(f"Unknown type '{name}'")
        self.name = name


class DuplicateDeclaration(GenerationError, ValueError):
    def __init__(self, name: str):
        super().__init__(f"Type '{name}' is declared more than once")
        self.name = name


class UnsupportedNestedCallback(GenerationError, NotImplementedError):
    def __init__(self, owner: str, field_name: str, type_name: str):
        super().__init__(
            f"Callback {owner}: field '{field_name}' of callback type {type_name} is not supported"
        )
        self.owner = owner
        self.field_name = field_name
        self.type_name = type_name


class UnknownMemoryKind(GenerationError, ValueError):
    def __init__(self, type_name: str, memory: object):
        super().__init__(f"Unknown memory kind {memory!r} for type '{type_name}'")
        self.type_name = type_name
        self.memory = memory


class TreeFormatError(GenerationError, ValueError):
    pass


class ArgumentNameConflict(GenerationError, ValueError):
    def __init__(self, owner: str, name: str, reason: str):
        super().__init__(f"{owner}: argument '{name}' {reason}")
        self.owner = owner
        self.name = name
        self.reason = reason
