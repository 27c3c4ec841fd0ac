from dataclasses import dataclass


@dataclass(frozen=True)
class GeneratorConfig:
    """Per-run settings, copied verbatim into the generated artifacts.

    ``module_name`` names the C++ namespace, include guard and the wasm
    instance; ``file_prefix`` names the generated files.
    """

    module_name: str
    file_prefix: str

    def __post_init__(self) -> None:
        if not self.module_name:
            raise ValueError("module_name must not be empty")
        if not self.file_prefix:
            raise ValueError("file_prefix must not be empty")
