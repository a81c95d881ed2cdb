from enum import Enum
from typing import Self

import msgspec


class Loader(str, Enum):
    VANILLA = "Vanilla"
    FABRIC = "Fabric"
    FORGE = "Forge"
    QUILT = "Quilt"
    NEOFORGE = "NeoForge"


class Instance(msgspec.Struct, frozen=True):
    """
    Data model for a Minecraft instance as stored by the backend.

    Instances are immutable; the instance store replaces them wholesale
    instead of editing them in place. Every field is required on the wire;
    use create() to build a new instance locally.
    """

    name: str
    loader: Loader
    version: str
    custom_args: list[str]
    downloaded: bool

    @classmethod
    def create(
        cls,
        name: str,
        loader: Loader | str,
        version: str,
        custom_args: list[str] | None = None,
    ) -> Self:
        """
        Create a new instance that has not been downloaded yet.

        :param name: Name of the instance
        :param loader: Mod loader, either a Loader or its wire name
        :param version: Minecraft version string
        :param custom_args: Extra JVM/game arguments
        :return: Created Instance
        """
        if custom_args is None:
            custom_args = []
        return cls(
            name=name,
            loader=Loader(loader),
            version=version,
            custom_args=list(custom_args),
            downloaded=False,
        )

    def to_wire(self) -> dict[str, object]:
        """Return the JSON-serializable shape sent to the backend."""
        return msgspec.to_builtins(self)
