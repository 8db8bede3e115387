"""Viewport profiles for sizing the preview frame on the host side."""

from enum import Enum

from .bundle import PreviewboxError


class ViewportProfile(Enum):
    """Named preview frame sizes as (width, height) in CSS pixels."""

    DESKTOP = (1280, 800)
    TABLET = (768, 1024)
    MOBILE = (375, 667)

    @property
    def size(self) -> tuple[int, int]:
        return self.value

    @property
    def width(self) -> int:
        return self.value[0]

    @property
    def height(self) -> int:
        return self.value[1]

    @classmethod
    def parse(cls, name: "str | ViewportProfile") -> "ViewportProfile":
        """Resolve a profile from its case-insensitive name.

        Raises:
            PreviewboxError: If the name is not a known profile.
        """
        if isinstance(name, cls):
            return name
        try:
            return cls[str(name).strip().upper()]
        except KeyError:
            valid = ", ".join(p.name.lower() for p in cls)
            raise PreviewboxError(
                f"Unknown viewport: {name}. Must be one of: {valid}"
            ) from None
