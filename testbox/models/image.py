"""Image identity model."""

from dataclasses import dataclass

DEFAULT_TAG = "latest"


@dataclass(frozen=True)
class ImageReference:
    """A name and tag pair identifying a container image.

    Equality is structural, so two references to ``app:latest`` compare equal
    regardless of where they came from.

    Examples:
        - ImageReference("redis") -> redis:latest
        - ImageReference.parse("localhost:5000/app:1.0") -> localhost:5000/app:1.0
    """

    name: str
    tag: str = DEFAULT_TAG

    def __post_init__(self):
        if not self.name:
            raise ValueError("Image name must not be empty")
        if not self.tag:
            raise ValueError("Image tag must not be empty")

    @classmethod
    def parse(cls, reference: str) -> "ImageReference":
        """Parse a ``name[:tag]`` string.

        A colon followed by a path segment belongs to a registry host:port,
        not a tag.

        Args:
            reference: Image reference string (e.g. 'nginx:1.25')

        Returns:
            Parsed ImageReference
        """
        if not reference:
            raise ValueError("Empty image reference")

        # Digests are not tracked; drop them so the name stays comparable
        reference = reference.split("@", 1)[0]

        last_colon = reference.rfind(":")
        if last_colon > 0 and "/" not in reference[last_colon + 1 :]:
            return cls(name=reference[:last_colon], tag=reference[last_colon + 1 :])
        return cls(name=reference)

    def __str__(self) -> str:
        return f"{self.name}:{self.tag}"
