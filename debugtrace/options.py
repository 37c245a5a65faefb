"""options.py - Per-call rendering overrides for ``print()``."""

from dataclasses import dataclass, replace

from .config import Config

# Sentinel meaning "use the configured value".
UNSET = -1


@dataclass(frozen=True)
class PrintOptions:
    """Overrides accepted by ``Tracer.print()``.

    Integer fields left at ``UNSET`` take the corresponding Config value when
    ``resolve()`` is called.

    Attributes:
        reflection: Render objects by reflection even if they define
            ``__str__`` or ``__repr__``.
        as_bytes: Render ``str`` values as the hex dump of their UTF-8 bytes.
        minimum_output_size: Element count from which ``(size:N)`` is shown.
        minimum_output_length: Length from which ``(length:N)`` is shown.
        collection_limit: Elements rendered per collection.
        bytes_limit: Bytes rendered per byte buffer.
        string_limit: Characters rendered per string.
        reflection_limit: Reflected-object nest limit.
    """

    reflection: bool = False
    as_bytes: bool = False
    minimum_output_size: int = UNSET
    minimum_output_length: int = UNSET
    collection_limit: int = UNSET
    bytes_limit: int = UNSET
    string_limit: int = UNSET
    reflection_limit: int = UNSET

    def resolve(self, config: Config) -> "PrintOptions":
        """Return a copy with every ``UNSET`` limit replaced from ``config``."""
        return replace(
            self,
            **{
                name: getattr(config, name)
                for name in (
                    "minimum_output_size",
                    "minimum_output_length",
                    "collection_limit",
                    "bytes_limit",
                    "string_limit",
                    "reflection_limit",
                )
                if getattr(self, name) == UNSET
            },
        )
